import os
from typing import Optional


def get_env_var(name: str, default: Optional[str] = None) -> str:
    """Return the value of an environment variable.

    The variable is required unless a `default` is given. An empty string
    counts as unset.

    Args:
        name (str): Name of the environment variable to read.
        default (Optional[str]): Value returned when the variable is not
            set. When None the variable is required.

    Returns:
        str: The non-empty value of the variable, or `default`.

    Raises:
        EnvironmentError: If a required variable is not set or empty.
    """
    value = os.environ.get(name)
    if value:
        return value
    if default is not None:
        return default
    raise EnvironmentError(f"{name} environment variable not set")
