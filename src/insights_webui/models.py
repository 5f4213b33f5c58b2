from __future__ import annotations

from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationInfo, field_validator


class _Record(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # The controller sends JSON null for columns it has not filled in yet.
        if value is None:
            return cls.model_fields[info.field_name].get_default()
        return value


class Cluster(_Record):
    """Cluster record in the controller service.

    name is the cluster GUID, e.g. c8590f31-e97e-4b85-b506-c45ce1911a12
    """

    id: int = 0
    name: str = ""


class ConfigurationProfile(_Record):
    """Reusable configuration body; configuration is JSON stored in a string."""

    id: int = 0
    configuration: str = ""
    changed_at: str = ""
    changed_by: str = ""
    description: str = ""


class ClusterConfiguration(_Record):
    id: int = 0
    cluster: str = ""
    configuration: str = ""
    changed_at: str = ""
    changed_by: str = ""
    # The controller has sent this as a string, a bool and an int over time.
    active: str | bool | int = ""
    reason: str = ""


class Trigger(_Record):
    """Administrative action (e.g. must-gather) requested against a cluster.

    acked_at is set once the insights operator has acknowledged the trigger.
    """

    id: int = 0
    type: str = ""
    cluster: str = ""
    reason: str = ""
    link: str = ""
    triggered_at: str = ""
    triggered_by: str = ""
    acked_at: str = ""
    parameters: str = ""
    active: int = 0


# A JSON null where a list is expected is treated as an empty list.
ClusterList = TypeAdapter(list[Cluster] | None)
ProfileItem = TypeAdapter(ConfigurationProfile)
ProfileList = TypeAdapter(list[ConfigurationProfile] | None)
ClusterConfigurationList = TypeAdapter(list[ClusterConfiguration] | None)
TriggerList = TypeAdapter(list[Trigger] | None)
