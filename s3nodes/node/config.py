"""Node configuration.

Static, deploy-time settings for the credentials node and the two
operation nodes. Immutable for the lifetime of a node.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..types import DEFAULT_REGION, Region
from .storage import Credentials


class CredentialsConfig(BaseModel):
    """
    Credentials node configuration.

    Only the values stored on the node are used. An incomplete pair
    leaves the node without credentials; the environment is never
    consulted.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: str | None = None

    access_key_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("access_key_id", "accesskeyid"),
    )

    # Never logged, never echoed in repr
    secret_access_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("secret_access_key", "secretaccesskey"),
    )

    def to_credentials(self) -> Credentials | None:
        """Return Credentials if both values are present and non-empty."""
        if not self.access_key_id or self.secret_access_key is None:
            return None
        if not self.secret_access_key.get_secret_value():
            return None
        return Credentials(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
        )


class CredentialsSettings(BaseSettings):
    """
    Credentials read from the environment by the command-line runner.

    Environment variables are prefixed with S3NODES_; the standard AWS_
    names are accepted too.

    Optional environment variables:
        S3NODES_ACCESS_KEY_ID / AWS_ACCESS_KEY_ID: Access key id
        S3NODES_SECRET_ACCESS_KEY / AWS_SECRET_ACCESS_KEY: Secret access key
    """

    model_config = SettingsConfigDict(env_prefix="S3NODES_", extra="ignore")

    access_key_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("S3NODES_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
    )

    secret_access_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "S3NODES_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"
        ),
    )

    def to_record(self) -> dict[str, str]:
        """Credentials node settings holding the values found, if any."""
        record: dict[str, str] = {}
        if self.access_key_id:
            record["access_key_id"] = self.access_key_id
        if self.secret_access_key is not None:
            record["secret_access_key"] = self.secret_access_key.get_secret_value()
        return record


class OperationConfig(BaseModel):
    """Shared download/upload node configuration.

    bucket and filename, when set, win over the values carried by the
    input message.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: str | None = None

    # Id of the credentials node to use
    credentials: str | None = Field(
        default=None, validation_alias=AliasChoices("credentials", "aws")
    )

    region: Region = DEFAULT_REGION

    # S3-compatible endpoint (e.g. MinIO); default AWS endpoint when unset
    endpoint_url: str | None = Field(
        default=None, validation_alias=AliasChoices("endpoint_url", "endpoint")
    )

    bucket: str = ""
    filename: str = ""

    @field_validator("region", mode="before")
    @classmethod
    def _default_region(cls, value: Any) -> Any:
        return value or DEFAULT_REGION

    @field_validator("bucket", "filename", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class DownloadConfig(OperationConfig):
    """Download node configuration."""


class UploadConfig(OperationConfig):
    """Upload node configuration.

    content_type and acl, when set, win over the message's contentType
    and acl fields. ACL values are passed through unvalidated.
    """

    content_type: str = Field(
        default="", validation_alias=AliasChoices("content_type", "contentType")
    )
    acl: str = ""

    @field_validator("content_type", "acl", mode="before")
    @classmethod
    def _none_to_empty_upload(cls, value: Any) -> Any:
        return "" if value is None else value
