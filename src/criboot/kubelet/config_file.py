# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/kubelet/config_file.py

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import DecodeError
from ..utils.serialize import loads_live_config


class KubeletConfiguration(BaseModel):
    """
    Runtime-related subset of a persisted kubelet configuration.
    Every other key of the file is kept as an extra field.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    container_runtime: Optional[str] = Field(default=None, alias="containerRuntime")
    enable_cri: Optional[bool] = Field(default=None, alias="enableCRI")
    remote_runtime_endpoint: Optional[str] = Field(default=None, alias="remoteRuntimeEndpoint")
    remote_image_endpoint: Optional[str] = Field(default=None, alias="remoteImageEndpoint")
    docker_endpoint: Optional[str] = Field(default=None, alias="dockerEndpoint")


def load_kubelet_config(path: str | Path) -> KubeletConfiguration:
    """
    Load a kubelet configuration previously written as JSON (for instance the
    backup saved before patching). Read errors propagate unchanged.
    """
    path = Path(path)
    raw = path.read_bytes()
    try:
        data = loads_live_config(raw)
        return KubeletConfiguration.model_validate(data)
    except (ValueError, ValidationError) as exc:
        raise DecodeError(f"failed to load kubelet config from {str(path)!r}: {exc}") from exc
