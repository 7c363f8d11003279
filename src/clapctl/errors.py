"""Error hierarchy for deployment orchestration.

Errors stay small and free of SDK objects so callers can report them
without leaking botocore responses (or credentials). Every error exposes a
stable ``code`` for programmatic handling; ``str(err)`` is the user-facing
message.
"""

from __future__ import annotations


class ClapctlError(Exception):
    """Base error for clapctl operations."""

    code = 'clapctl_error'


class InvalidCredentialsError(ClapctlError):
    """Vendor credential check failed while constructing a provider."""

    code = 'invalid_credentials'

    def __init__(self, profile: str) -> None:
        self.profile = profile
        super().__init__(f"Invalid AWS credentials for profile '{profile}'")


class StackNotFoundError(ClapctlError):
    """A name-scoped stack query matched zero stacks."""

    code = 'stack_not_found'

    def __init__(self, stack_name: str) -> None:
        self.stack_name = stack_name
        super().__init__(f"Stack '{stack_name}' not found")


class ArtifactStoreError(ClapctlError):
    """The artifact bucket could not answer a marker query."""

    code = 'artifact_store_error'

    def __init__(self, bucket: str, reason: str) -> None:
        self.bucket = bucket
        self.reason = reason
        super().__init__(f'Failed to get {reason} from bucket {bucket}')


class VersionResolutionError(ClapctlError):
    """A requested version has no artifact for the target architecture."""

    code = 'version_unresolved'
    message = 'Version could not be resolved'

    def __init__(self, version: str, arch: str) -> None:
        self.version = version
        self.arch = arch
        super().__init__(self.message)


class InvalidVersionError(VersionResolutionError):
    """Raised on the deploy path."""

    code = 'invalid_version'
    message = 'Invalid version'


class ArtifactNotFoundError(VersionResolutionError):
    """Raised on the update path."""

    code = 'artifact_not_found'
    message = 'Artifact not found, check the version/commit'


class DeploymentFailedError(ClapctlError):
    """The watched stack reached a terminal failure status."""

    code = 'deployment_failed'

    def __init__(self, action: str, status: str | None = None) -> None:
        self.action = action
        self.status = status
        super().__init__(
            f'{action} service failed, you should check {action} detail'
        )


class StatusCheckError(ClapctlError):
    """Polling could not read the stack status."""

    code = 'status_check_failed'

    def __init__(self, stack_name: str, detail: str) -> None:
        self.stack_name = stack_name
        self.detail = detail
        super().__init__(f'Failed to check deployment status: {detail}')


class UnknownProviderError(ClapctlError, LookupError):
    """No factory is registered under the requested provider name."""

    code = 'unknown_provider'

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = list(available)
        listed = ', '.join(self.available) or 'none'
        super().__init__(f'Unknown cloud provider: {name}. Available: {listed}')


class LambdaInvocationError(ClapctlError):
    """The invoked function reported an error payload."""

    code = 'lambda_invocation_failed'

    def __init__(self, function_name: str, function_error: str, payload: str) -> None:
        self.function_name = function_name
        self.function_error = function_error
        self.payload = payload
        super().__init__(f'Lambda function error: {function_error} - {payload}')
