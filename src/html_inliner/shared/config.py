"""Configuration classes for tokenizing, building and inlining.

Component configurations validate themselves in ``__post_init__``; the
frozen ``InlinerConfig`` aggregates them and handles serialization,
overrides and presets.
"""

import json
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
COMPONENT_FIELDS = ["tokenizer", "tree", "inline", "global_"]


@dataclass
class TokenizerConfig:
    """Configuration for the tokenizer and text merger."""

    # Only purely alphabetic words may form a tag; False also accepts
    # identifier-like words such as h1 or data-id.
    strict_names: bool = True
    merge_text: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.strict_names, bool):
            raise ValueError("strict_names must be a bool")
        if not isinstance(self.merge_text, bool):
            raise ValueError("merge_text must be a bool")


@dataclass
class TreeConfig:
    """Configuration for tree building."""

    record_diagnostics: bool = True
    max_diagnostics: Optional[int] = 1000

    def __post_init__(self) -> None:
        if self.max_diagnostics is not None and self.max_diagnostics < 0:
            raise ValueError("max_diagnostics must be >= 0 or None")


@dataclass
class InlineConfig:
    """Configuration for the resource inliner."""

    text_extensions: Tuple[str, ...] = (".html", ".js", ".css")
    stylesheet_extensions: Tuple[str, ...] = (".css",)
    link_attributes: Tuple[str, ...] = ("href", "src")
    skip_external: bool = True
    encoding: str = "utf-8"
    fallback_media_type: str = "application/octet-stream"

    def __post_init__(self) -> None:
        # JSON round trips deliver lists
        self.text_extensions = tuple(self.text_extensions)
        self.stylesheet_extensions = tuple(self.stylesheet_extensions)
        self.link_attributes = tuple(self.link_attributes)

        for ext in self.text_extensions + self.stylesheet_extensions:
            if not ext.startswith("."):
                raise ValueError(f"extension {ext!r} must start with '.'")
        for ext in self.stylesheet_extensions:
            if ext not in self.text_extensions:
                raise ValueError(
                    f"stylesheet extension {ext!r} must also be a text extension"
                )
        if not self.link_attributes:
            raise ValueError("link_attributes cannot be empty")
        if not self.encoding:
            raise ValueError("encoding cannot be empty")
        if "/" not in self.fallback_media_type:
            raise ValueError("fallback_media_type must look like type/subtype")


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "WARNING"
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {VALID_LOGGING_LEVELS}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class InlinerConfig:
    """Immutable configuration for every layer of the inliner.

    Example:
        >>> config = InlinerConfig().override(tokenizer__strict_names=False)
        >>> config.tokenizer.strict_names
        False
    """

    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    inline: InlineConfig = field(default_factory=InlineConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None

    def __post_init__(self) -> None:
        for component in COMPONENT_FIELDS:
            value = getattr(self, component)
            try:
                value.__post_init__()
            except ValueError as e:
                raise ConfigValidationError(str(e), field_name=component) from e

    def override(self, **kwargs: Any) -> "InlinerConfig":
        """Create a new configuration with specific overrides.

        Nested fields use ``component__field`` keys, e.g.
        ``inline__encoding="latin-1"``.
        """
        nested: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.rsplit("__", 1)
                if component not in COMPONENT_FIELDS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=component,
                        suggestions=COMPONENT_FIELDS,
                    )
                nested.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = {}
        for component, overrides in nested.items():
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name=component) from e
        new_fields.update(top_level)

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        def _dataclass_to_dict(obj: Any) -> Any:
            if is_dataclass(obj):
                return {f.name: _dataclass_to_dict(getattr(obj, f.name))
                        for f in fields(obj)}
            if isinstance(obj, (list, tuple)):
                return [_dataclass_to_dict(item) for item in obj]
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InlinerConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so typos in config files do not pass
        silently.
        """
        component_types = {
            "tokenizer": TokenizerConfig,
            "tree": TreeConfig,
            "inline": InlineConfig,
            "global_": GlobalConfig,
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_types:
                target = component_types[key]
                known = {f.name for f in fields(target)}
                unknown = sorted(set(value) - known)
                if unknown:
                    raise ConfigValidationError(
                        f"Unknown {key} settings: {', '.join(unknown)}",
                        field_name=key,
                        suggestions=sorted(known),
                    )
                try:
                    values[key] = target(**value)
                except ValueError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key == "name":
                values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}",
                    field_name=key,
                    suggestions=COMPONENT_FIELDS + ["name"],
                )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "InlinerConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "InlinerConfig":
        """Purely alphabetic tag names (the default tokenizer heuristic)."""
        return cls(name="strict")

    @classmethod
    def lenient(cls) -> "InlinerConfig":
        """Accept identifier-like tag names such as ``h1`` or ``data-id``."""
        return cls(tokenizer=TokenizerConfig(strict_names=False), name="lenient")
