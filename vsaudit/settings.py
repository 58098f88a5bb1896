import logging
from typing import Any
from typing import List

from dynaconf import Dynaconf

logger = logging.getLogger(__name__)


settings = Dynaconf(
    includes=["settings.toml"],
    load_dotenv=True,
    merge_enabled=True,
    envvar_prefix="VSAUDIT",
)


def check_module_settings(module_name: str, required_settings: List[str]) -> bool:
    """
    Check if the required settings for a module are set in the configuration.

    Args:
        module_name (str): The name of the settings section, e.g. "vsphere".
        required_settings (List[str]): A list of required settings for the section.

    Returns:
        bool: True if all required settings are present, False otherwise.
    """
    module_settings = settings.get(module_name.upper(), None)
    if module_settings is None:
        logger.info("%s is not configured in settings.", module_name)
        return False

    missing_settings = [
        setting for setting in required_settings if not module_settings.get(setting)
    ]
    if len(missing_settings) > 0:
        logger.warning(
            "%s is not fully configured. Missing settings: %s",
            module_name,
            ", ".join(missing_settings),
        )
        return False
    return True


def get_setting(module_name: str, key: str, default: Any = None) -> Any:
    """Read `<module_name>.<key>` from settings, returning `default` when unset."""
    module_settings = settings.get(module_name.upper(), None)
    if module_settings is None:
        return default
    value = module_settings.get(key)
    return default if value is None else value


def populate_settings_from_options(module_name: str, **options: Any) -> None:
    """
    Push explicit CLI options into the settings object so that the rest of the
    program reads a single source of truth. Options set to None are ignored.
    """
    values = {k: v for k, v in options.items() if v is not None}
    if values:
        settings.update({module_name: values})
