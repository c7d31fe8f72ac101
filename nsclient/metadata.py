"""Labels, annotations and manifest metadata from command-line input."""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from nsclient.errors import OptionError

logger = logging.getLogger(__name__)

# Kubernetes label/annotation key: optional DNS subdomain prefix, then a name
_NAME_PART = r"[A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?"
_PREFIX_PART = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
LABEL_KEY_RE = re.compile(rf"^({_PREFIX_PART}/)?{_NAME_PART}$")
LABEL_VALUE_RE = re.compile(rf"^({_NAME_PART})?$")
PREFIX_MAX_LENGTH = 253


class Metadata(BaseModel):
    """The parts of a manifest's ``metadata`` block we care about."""

    name: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class Manifest(BaseModel):
    metadata: Metadata


def _is_valid_key(key: str) -> bool:
    if not LABEL_KEY_RE.match(key):
        return False
    prefix, _, _ = key.rpartition("/")
    return len(prefix) <= PREFIX_MAX_LENGTH


def parse_label(text: str) -> tuple[str, str]:
    """Parse a single ``key=value`` label."""
    key, sep, value = text.partition("=")
    key, value = key.strip(), value.strip()
    if not sep:
        raise ValueError(f"expected 'key=value', got '{text}'")
    if not _is_valid_key(key):
        raise ValueError(f"invalid label key '{key}'")
    if not LABEL_VALUE_RE.match(value):
        raise ValueError(
            f"invalid label value '{value}': at most 63 characters, alphanumerics, "
            "'-', '_' or '.', starting and ending with an alphanumeric"
        )
    return key, value


def parse_labels(text: str) -> dict[str, str]:
    """Parse either one label or a comma-separated list of labels."""
    labels: dict[str, str] = {}
    for part in text.split(","):
        if not part.strip():
            continue
        key, value = parse_label(part)
        labels[key] = value
    if not labels:
        raise ValueError("no labels given")
    return labels


def parse_annotation(text: str) -> tuple[str, str]:
    """Parse ``key=value``; the value is free-form and may contain '=' or ','."""
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep:
        raise ValueError(f"expected 'key=value', got '{text}'")
    if not _is_valid_key(key):
        raise ValueError(f"invalid annotation key '{key}'")
    return key, value


def read_document(option: str, value: str) -> Any:
    """Load YAML (or JSON) given inline, or from a file when prefixed with '@'."""
    try:
        if value.startswith("@"):
            path = Path(value[1:])
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        return yaml.safe_load(value)
    except (OSError, yaml.YAMLError) as e:
        raise OptionError(option, value, str(e)) from e


def parse_manifest(value: str) -> Metadata:
    """Extract metadata from a Kubernetes manifest."""
    data = read_document("metadata-from-manifest", value)
    try:
        return Manifest.model_validate(data).metadata
    except ValidationError as e:
        raise OptionError("metadata-from-manifest", value, str(e)) from e


def parse_extra_properties(value: str | None) -> dict[str, Any]:
    """Extra payload properties from ``--extra-data``."""
    if not value:
        return {}
    data = read_document("extra-data", value)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OptionError("extra-data", value, "expected a mapping")
    # YAML dates and timestamps come back as datetime objects; send them as strings
    try:
        return json.loads(json.dumps({str(k): v for k, v in data.items()}, default=str))
    except (TypeError, ValueError) as e:
        raise OptionError("extra-data", value, f"cannot be sent as JSON: {e}") from e


def collect_metadata(
    manifest: str | None,
    labels: tuple[str, ...] | list[str] = (),
    annotations: tuple[str, ...] | list[str] = (),
) -> Metadata:
    """Merge manifest metadata with labels/annotations given on the command line.

    Command-line values win over the manifest.
    """
    metadata = parse_manifest(manifest) if manifest else Metadata()

    for text in labels:
        try:
            metadata.labels.update(parse_labels(text))
        except ValueError as e:
            raise OptionError("label", text, str(e)) from e

    for text in annotations:
        try:
            key, value = parse_annotation(text)
        except ValueError as e:
            raise OptionError("annotation", text, str(e)) from e
        metadata.annotations[key] = value

    logger.debug(f"Collected metadata: labels={metadata.labels}, annotations={metadata.annotations}")
    return metadata
