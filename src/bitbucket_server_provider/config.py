import os

from pydantic import BaseModel, Field, ValidationError

from bitbucket_server_provider.errors import ConfigurationError

_ENV_FIELDS = {
    "BITBUCKET_URL": "bitbucket_url",
    "BITBUCKET_VERSION_TARGET": "bitbucket_version_target",
    "BITBUCKET_PROJECT_KEY": "project_key",
    "BITBUCKET_TOKEN": "token",
    "BITBUCKET_USERNAME": "username",
    "BITBUCKET_PASSWORD": "password",
    "BITBUCKET_TIMEOUT": "timeout",
    "BITBUCKET_VERIFY_SSL": "verify_ssl",
}


class AppConfig(BaseModel):
    bitbucket_url: str = Field(default="http://localhost:7990")
    bitbucket_version_target: str = Field(default="9.4.16")
    project_key: str = Field(default="TEST")
    token: str | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    timeout: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        """Build a config from ``BITBUCKET_*`` environment variables.

        Unset variables fall back to the field defaults.

        Raises:
            ConfigurationError: If a variable holds a value of the wrong type
                or only one of username/password is set.
        """
        environ = os.environ if environ is None else environ
        values = {field: environ[var] for var, field in _ENV_FIELDS.items() if environ.get(var)}
        try:
            config = cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid Bitbucket configuration: {e}") from e

        if (config.username is None) != (config.password is None):
            raise ConfigurationError("BITBUCKET_USERNAME and BITBUCKET_PASSWORD must be set together")
        return config
