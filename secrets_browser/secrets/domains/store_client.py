"""Secret store clients: the AWS CLI shell-out and the GCP Secret Manager SDK."""
import base64
import json
import logging
import subprocess
from typing import List, Optional, Protocol

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .errors import MalformedResponseError, NotFoundError, TransportError
from .models import SecretSummary

logger = logging.getLogger(__name__)


class SecretStoreClient(Protocol):
    """What the session model needs from a secret store."""

    def list_secrets(self) -> List[SecretSummary]:
        """Return every secret the caller can see, in store order."""
        ...

    def get_secret_value(self, secret_id: str) -> str:
        """Return the raw payload of one secret."""
        ...

    def canonical_id(self, secret_id: str) -> str:
        """Return the form of secret_id that sessions are cached under."""
        ...


class AwsCliSecretClient:
    """Secrets Manager access through the `aws` command line client."""

    def __init__(self, profile: Optional[str] = None, region: Optional[str] = None,
                 cli_path: str = "aws"):
        self.profile = profile
        self.region = region
        self.cli_path = cli_path

    def _command(self, *args: str) -> List[str]:
        command = [self.cli_path, "secretsmanager", *args, "--output", "json"]
        if self.profile:
            command += ["--profile", self.profile]
        if self.region:
            command += ["--region", self.region]
        return command

    def canonical_id(self, secret_id: str) -> str:
        # a name and its ARN cannot be matched without a store call
        return secret_id

    def _run(self, operation: str, command: List[str], secret_id: Optional[str] = None) -> dict:
        """
        Run one aws command and decode its JSON output.

        Raises:
            NotFoundError: If the CLI reports ResourceNotFoundException
            TransportError: If the CLI is missing or exits non-zero
            MalformedResponseError: If stdout is not a JSON object
        """
        logger.debug(f"Running: {' '.join(command)}")
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as e:
            raise TransportError(f"{operation} failed: cannot run '{self.cli_path}': {e}")

        if result.returncode != 0:
            stderr = result.stderr.strip()
            if secret_id is not None and "ResourceNotFoundException" in stderr:
                raise NotFoundError(secret_id, stderr)
            raise TransportError(
                f"{operation} failed (exit code {result.returncode}): {stderr or 'no output'}"
            )

        try:
            payload = json.loads(result.stdout)
        except ValueError as e:
            raise MalformedResponseError(f"{operation} returned invalid JSON: {e}")
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"{operation} returned {type(payload).__name__}, expected an object")
        return payload

    def list_secrets(self) -> List[SecretSummary]:
        payload = self._run("list-secrets", self._command("list-secrets"))
        entries = payload.get("SecretList")
        if not isinstance(entries, list):
            raise MalformedResponseError("list-secrets output has no 'SecretList'")

        summaries = []
        for entry in entries:
            if not isinstance(entry, dict) or "Name" not in entry or "ARN" not in entry:
                raise MalformedResponseError(f"list-secrets entry missing 'Name' or 'ARN': {entry!r}")
            summaries.append(SecretSummary(name=entry["Name"], id=entry["ARN"]))
        return summaries

    def get_secret_value(self, secret_id: str) -> str:
        operation = f"get-secret-value for '{secret_id}'"
        payload = self._run(
            operation,
            self._command("get-secret-value", "--secret-id", secret_id),
            secret_id=secret_id,
        )
        if "SecretString" in payload:
            return payload["SecretString"]
        if "SecretBinary" in payload:
            try:
                return base64.b64decode(payload["SecretBinary"]).decode("UTF-8")
            except (ValueError, UnicodeDecodeError) as e:
                raise MalformedResponseError(f"{operation}: cannot decode SecretBinary: {e}")
        raise MalformedResponseError(f"{operation}: output has neither 'SecretString' nor 'SecretBinary'")


class GCPSecretClient:
    """Wrapper around GCP Secret Manager client."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self._client = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def resource_name(self, secret_id: str) -> str:
        """Expand a bare secret name to projects/<project>/secrets/<name>."""
        if secret_id.startswith("projects/"):
            return secret_id
        return f"projects/{self.project_id}/secrets/{secret_id}"

    def canonical_id(self, secret_id: str) -> str:
        return self.resource_name(secret_id)

    def list_secrets(self) -> List[SecretSummary]:
        parent = f"projects/{self.project_id}"
        try:
            secrets = list(self.client.list_secrets(request={"parent": parent}))
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise TransportError(f"list-secrets failed for {parent}: {e}")

        summaries = []
        for secret in secrets:
            if not getattr(secret, "name", None):
                raise MalformedResponseError(f"list-secrets entry without a name under {parent}")
            summaries.append(SecretSummary(name=secret.name.rsplit("/", 1)[-1], id=secret.name))
        return summaries

    def get_secret_value(self, secret_id: str) -> str:
        name = f"{self.resource_name(secret_id)}/versions/latest"
        try:
            response = self.client.access_secret_version(request={"name": name})
        except gcp_exceptions.NotFound as e:
            raise NotFoundError(secret_id, str(e))
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise TransportError(f"get-secret-value for '{secret_id}' failed: {e}")
        try:
            return response.payload.data.decode("UTF-8")
        except UnicodeDecodeError as e:
            raise MalformedResponseError(f"get-secret-value for '{secret_id}': payload is not UTF-8: {e}")
