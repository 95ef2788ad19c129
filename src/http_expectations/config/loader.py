"""YAML configuration loader for response expectations."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from http_expectations.config.models import ExpectationsConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Locate, read and merge http-expectations YAML files."""

    DEFAULT_CONFIG_NAMES = [
        "http_expectations.yaml",
        "http_expectations.yml",
        ".http_expectations.yaml",
        ".http_expectations.yml",
        "http-expectations.yaml",
        "http-expectations.yml",
    ]

    @classmethod
    def load(
        cls,
        config_path: Optional[str | Path] = None,
        root_dir: Optional[Path] = None,
    ) -> ExpectationsConfig:
        """
        Build the configuration for a test session.

        Args:
            config_path: File to read. Relative paths are taken from
                ``root_dir``. When omitted, ``root_dir`` and its parents are
                searched for one of ``DEFAULT_CONFIG_NAMES``.
            root_dir: Project root; the working directory when omitted.

        Returns:
            The validated configuration, or the defaults when no file exists.

        Raises:
            FileNotFoundError: If ``config_path`` points at a missing file.
            pydantic.ValidationError: If the file content is invalid.
        """
        base = Path.cwd() if root_dir is None else root_dir

        if config_path is None:
            found = cls.find_config_file(base)
            if found is None:
                logger.info("No expectations configuration file found, using defaults")
                return ExpectationsConfig()
            return cls._load_from_file(found)

        explicit = Path(config_path)
        if not explicit.is_absolute():
            explicit = base / explicit
        if not explicit.is_file():
            raise FileNotFoundError(f"Configuration file not found: {explicit}")
        return cls._load_from_file(explicit)

    @classmethod
    def find_config_file(cls, start_dir: Path) -> Optional[Path]:
        """
        Return the first default-named file in ``start_dir`` or an ancestor.

        Within one directory, names are tried in ``DEFAULT_CONFIG_NAMES`` order.
        """
        start = start_dir.resolve()
        for directory in (start, *start.parents):
            for name in cls.DEFAULT_CONFIG_NAMES:
                candidate = directory / name
                if candidate.is_file():
                    logger.debug(f"Found expectations config file: {candidate}")
                    return candidate
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> ExpectationsConfig:
        logger.info(f"Loading expectations configuration from: {path}")
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return ExpectationsConfig.model_validate(data)

    @classmethod
    def merge_configs(
        cls, base: ExpectationsConfig, override: ExpectationsConfig
    ) -> ExpectationsConfig:
        """
        Layer ``override`` on top of ``base``.

        Only fields set explicitly on ``override`` win; ``routes`` are merged
        by name instead of replaced.
        """
        changes = override.model_dump(exclude_unset=True)
        routes = {**base.routes, **changes.pop("routes", {})}
        return base.model_copy(update={**changes, "routes": routes})
