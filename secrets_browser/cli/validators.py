"""Input validation for CLI arguments."""
import re
import sys


def validate_secret_ref(ref: str) -> None:
    """
    Validate a secret name, ARN or resource name given on the command line.

    Accepts anything non-empty without whitespace or control characters;
    the store decides whether the secret exists.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not ref:
        print("Error: Secret id cannot be empty", file=sys.stderr)
        sys.exit(2)

    if re.search(r'[\s\x00-\x1f]', ref):
        print(f"Error: Invalid secret id '{ref}'", file=sys.stderr)
        print("\nSecret ids cannot contain whitespace or control characters.", file=sys.stderr)
        print("\nExamples of valid ids:", file=sys.stderr)
        print("  ✓ prod/db-credentials", file=sys.stderr)
        print("  ✓ arn:aws:secretsmanager:eu-west-1:123456789012:secret:prod/db-AbCdEf", file=sys.stderr)
        print("  ✓ projects/my-project/secrets/API_KEY", file=sys.stderr)
        sys.exit(2)
