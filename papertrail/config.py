"""Configuration management.

``Settings`` is a **metaclass-based singleton**: the first call to
``Settings.load()`` creates the instance; every later call returns
the same object.  Use ``update()`` to change values at runtime, or
``reload()`` to re-read everything from disk.

All user-editable configuration lives in ``.metadata/config.yaml``.
On first run, missing files are copied from ``.metadata.example/``.
Environment variables (``PAPERTRAIL_ENV``, ``OLLAMA_URL`` ...) take
precedence over the YAML file.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_TOPICS = ["machine learning", "quantum computing", "climate change"]
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:5174",
]


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LLMSettings:
    """Connection details for the text-generation backend (Ollama)."""

    base_url: str = "http://localhost:11434"
    model: str = "llama3.2:3b"
    timeout: float = 30.0
    api_key: str = ""
    enabled: bool = True
    temperature: float = 0.7
    num_ctx: int = 4096


@dataclass
class ArxivSettings:
    """ArXiv query API settings."""

    base_url: str = "http://export.arxiv.org/api/query"
    timeout: float = 30.0
    delay: float = 1.0
    papers_per_topic: int = 20
    default_topics: list[str] = field(default_factory=lambda: list(DEFAULT_TOPICS))


# ---------------------------------------------------------------------------
# Singleton metaclass
# ---------------------------------------------------------------------------

class _SettingsMeta(type):
    """Metaclass that enforces a process-wide singleton for *Settings*.

    * First ``Settings(...)`` creates and caches the instance.
    * Later ``Settings(...)`` calls return the cached instance (args ignored).
    """

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


# ---------------------------------------------------------------------------
# Settings dataclass (singleton)
# ---------------------------------------------------------------------------

@dataclass
class Settings(metaclass=_SettingsMeta):
    """Application settings: a singleton with runtime-mutable values.

    Usage::

        settings = Settings.load()            # first call → create
        settings = Settings.load()            # later → same object
        settings.update(data_dir=Path(...))   # runtime change
        settings = Settings.reload()          # re-read from disk
    """

    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 3002
    base_dir: Path = Path(".")
    metadata_dir: Path = Path(".metadata")
    data_dir: Path = Path("data")
    upload_dir: Path = Path("uploads")
    export_dir: Path = Path("exports")
    max_upload_mb: int = 50
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    llm: LLMSettings = field(default_factory=LLMSettings)
    arxiv: ArxivSettings = field(default_factory=ArxivSettings)

    # ── Computed properties ────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        """True when running with ``environment: production``."""
        return self.environment.lower() == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    # ── Runtime helpers ───────────────────────────────────────────────

    def update(self, **kwargs: Any) -> None:
        """Mutate settings fields at runtime.

        >>> Settings.load().update(data_dir=Path("/tmp/papertrail"))
        """
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Settings has no field '{key}'")
            setattr(self, key, value)

    # ── Factory / lifecycle ───────────────────────────────────────────

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Load or return the singleton Settings instance.

        On first call the singleton is created; subsequent calls return
        the cached instance.  Pass *base_dir* to override the project
        root (defaults to the repository root one level above ``papertrail/``).
        """
        if cls in _SettingsMeta._instances:
            return _SettingsMeta._instances[cls]  # type: ignore[return-value]

        if base_dir is None:
            base_dir = Path(__file__).resolve().parent.parent

        metadata_dir = base_dir / ".metadata"
        cls._ensure_default_files(base_dir, metadata_dir)

        data = _load_yaml(metadata_dir / "config.yaml")
        _apply_env_overrides(data)

        llm_data = data.get("llm") or {}
        arxiv_data = data.get("arxiv") or {}
        log_data = data.get("logging") or {}

        log_file = log_data.get("file")

        return cls(
            environment=str(data.get("environment", "development")),
            host=str(data.get("host", "127.0.0.1")),
            port=int(data.get("port", 3002)),
            base_dir=base_dir,
            metadata_dir=metadata_dir,
            data_dir=_resolve(base_dir, data.get("data_dir", "data")),
            upload_dir=_resolve(base_dir, data.get("upload_dir", "uploads")),
            export_dir=_resolve(base_dir, data.get("export_dir", "exports")),
            max_upload_mb=int(data.get("max_upload_mb", 50)),
            cors_origins=list(data.get("cors_origins") or DEFAULT_CORS_ORIGINS),
            log_level=str(log_data.get("level", "INFO")).upper(),
            log_file=_resolve(base_dir, log_file) if log_file else None,
            llm=LLMSettings(
                base_url=str(llm_data.get("base_url", LLMSettings.base_url)),
                model=str(llm_data.get("model", LLMSettings.model)),
                timeout=float(llm_data.get("timeout", LLMSettings.timeout)),
                api_key=str(llm_data.get("api_key") or ""),
                enabled=bool(llm_data.get("enabled", True)),
                temperature=float(llm_data.get("temperature", LLMSettings.temperature)),
                num_ctx=int(llm_data.get("num_ctx", LLMSettings.num_ctx)),
            ),
            arxiv=ArxivSettings(
                base_url=str(arxiv_data.get("base_url", ArxivSettings.base_url)),
                timeout=float(arxiv_data.get("timeout", ArxivSettings.timeout)),
                delay=float(arxiv_data.get("delay", ArxivSettings.delay)),
                papers_per_topic=int(
                    arxiv_data.get("papers_per_topic", ArxivSettings.papers_per_topic)
                ),
                default_topics=list(arxiv_data.get("default_topics") or DEFAULT_TOPICS),
            ),
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Discard the current singleton and re-load from disk."""
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton so the next ``load()`` re-creates it."""
        _SettingsMeta._instances.pop(cls, None)

    # ── Private ───────────────────────────────────────────────────────

    @staticmethod
    def _ensure_default_files(base_dir: Path, metadata_dir: Path) -> None:
        """Copy ``.metadata.example/`` templates when real files are missing."""
        metadata_dir.mkdir(parents=True, exist_ok=True)

        example_dir = base_dir / ".metadata.example"
        if not example_dir.exists():
            return

        for example_file in example_dir.iterdir():
            if example_file.is_file():
                target = metadata_dir / example_file.name
                if not target.exists():
                    shutil.copy2(example_file, target)
                    logger.info("Created .metadata/%s from template", example_file.name)


# ---------------------------------------------------------------------------
# YAML / environment loaders
# ---------------------------------------------------------------------------

def _resolve(base_dir: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load ``config.yaml``; unreadable or missing files yield ``{}``."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read %s, using defaults: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


# env var → (section, key); section None means top level
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "PAPERTRAIL_ENV": (None, "environment"),
    "PAPERTRAIL_HOST": (None, "host"),
    "PORT": (None, "port"),
    "PAPERTRAIL_DATA_DIR": (None, "data_dir"),
    "PAPERTRAIL_UPLOAD_DIR": (None, "upload_dir"),
    "OLLAMA_URL": ("llm", "base_url"),
    "OLLAMA_MODEL": ("llm", "model"),
    "LLM_API_KEY": ("llm", "api_key"),
    "LLM_TIMEOUT": ("llm", "timeout"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FILE": ("logging", "file"),
}


def _apply_env_overrides(data: dict[str, Any]) -> None:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        if section is None:
            data[key] = value
        else:
            target = data.get(section)
            if not isinstance(target, dict):
                target = {}
                data[section] = target
            target[key] = value


def save_config(path: Path, settings: Settings) -> None:
    """Persist the user-editable part of *settings* to ``config.yaml``."""
    data: dict[str, Any] = {
        "environment": settings.environment,
        "host": settings.host,
        "port": settings.port,
        "data_dir": str(settings.data_dir),
        "upload_dir": str(settings.upload_dir),
        "export_dir": str(settings.export_dir),
        "max_upload_mb": settings.max_upload_mb,
        "cors_origins": settings.cors_origins,
        "llm": {
            "base_url": settings.llm.base_url,
            "model": settings.llm.model,
            "timeout": settings.llm.timeout,
            "api_key": settings.llm.api_key,
            "enabled": settings.llm.enabled,
        },
        "arxiv": {
            "base_url": settings.arxiv.base_url,
            "timeout": settings.arxiv.timeout,
            "delay": settings.arxiv.delay,
            "papers_per_topic": settings.arxiv.papers_per_topic,
            "default_topics": settings.arxiv.default_topics,
        },
        "logging": {
            "level": settings.log_level,
            "file": str(settings.log_file) if settings.log_file else None,
        },
    }
    with open(path, "w", encoding="utf-8") as f:
        f.write("# PaperTrail backend configuration\n\n")
        yaml.dump(
            data,
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )
