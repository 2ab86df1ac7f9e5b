"""Connection settings for one Syncthing instance."""

from pydantic import BaseModel, ConfigDict, Field

from syncthing_connector.tls import ExpectedTlsError


class ConnectionSettings(BaseModel):
    """Everything a ``SyncthingConnection`` needs to reach and poll a daemon.

    Intervals are in milliseconds.  ``reconnect_interval`` of 0 disables
    automatic reconnects.  When ``expected_tls_errors`` is empty the
    connection tries to load the self-signed GUI certificate itself and
    writes the resulting expectations back into this object.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    syncthing_url: str = Field(
        "http://localhost:8384",
        description="Base URL of the Syncthing GUI/REST endpoint",
    )
    api_key: str = Field("", description="API key sent as X-API-Key")
    auth_enabled: bool = Field(False, description="Send HTTP basic auth credentials")
    user_name: str = ""
    password: str = ""
    https_cert_path: str | None = Field(
        None, description="GUI certificate; located automatically when omitted"
    )
    expected_tls_errors: list[ExpectedTlsError] = Field(default_factory=list)
    traffic_poll_interval: int = Field(2000, ge=500)
    dev_stats_poll_interval: int = Field(60000, ge=1000)
    dir_stats_poll_interval: int = Field(60000, ge=1000)
    errors_poll_interval: int = Field(30000, ge=1000)
    reconnect_interval: int = Field(0, ge=0)
