from insights_webui.config import WebUIConfig, load_webui_config
from insights_webui.errors import (
    BackendTimeout,
    ConfigError,
    DecodeError,
    MissingParameter,
    TemplateError,
    TransportError,
    UnexpectedStatus,
    WebUIError,
)
from insights_webui.models import Cluster, ClusterConfiguration, ConfigurationProfile, Trigger

__version__ = "0.1.0"

__all__ = [
    "BackendTimeout",
    "Cluster",
    "ClusterConfiguration",
    "ConfigError",
    "ConfigurationProfile",
    "DecodeError",
    "MissingParameter",
    "TemplateError",
    "TransportError",
    "Trigger",
    "UnexpectedStatus",
    "WebUIConfig",
    "WebUIError",
    "__version__",
    "load_webui_config",
]
