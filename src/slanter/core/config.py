"""
slanter/core/config
~~~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, TypedDict, Union

# Type alias for setting values
SettingValue = Union[str, int, float, bool, None]


class SolverDefaults(TypedDict):
    """
    Type class for ordering and clustering defaults.
    """

    max_iterations: int
    squared_order: bool
    same_order: bool
    discount_outliers: bool
    method: str
    warn_height_reversals: bool


DEFAULT_SETTINGS: SolverDefaults = {
    # Order solver: cap on full (row + column) passes per convergence phase
    "max_iterations": 1000,
    # Square weights before computing centers of mass
    "squared_order": False,
    # Square matrices only: rows and columns share one permutation
    "same_order": False,
    # Second phase that down-weights cells far from the diagonal
    "discount_outliers": False,
    # Clustering engine: one of {"ward.D", "ward.D2"}
    "method": "ward.D2",
    # Warn when a constrained merge is raised to its children's height
    "warn_height_reversals": False,
}


class SolverConfig:
    """
    Class for storing solver defaults and overrides.
    """

    def __init__(self, defaults: Optional[Mapping[str, SettingValue]] = None) -> None:
        """
        Initializes the SolverConfig instance.

        Args:
            defaults (Optional[Mapping[str, SettingValue]]): Base defaults. Defaults to None.
        """
        if defaults is None:
            defaults = DEFAULT_SETTINGS
        self._defaults: Dict[str, SettingValue] = dict(defaults)
        self._overrides: Dict[str, SettingValue] = {}

    def get(self, key: str, default: Optional[SettingValue] = None) -> SettingValue:
        """
        Gets a setting with override priority.

        Args:
            key (str): Setting key.
            default (Optional[SettingValue]): Value if key not found. Defaults to None.

        Returns:
            SettingValue: Resolved setting.
        """
        if key in self._overrides:
            return self._overrides[key]
        return self._defaults.get(key, default)

    def set(self, key: str, value: SettingValue) -> None:
        """
        Overrides a setting.

        Args:
            key (str): Setting key.
            value (SettingValue): Value to set.

        Raises:
            KeyError: If the key is not a known setting.
        """
        if key not in self._defaults:
            raise KeyError(f"Unknown setting: {key!r}")
        self._overrides[key] = value

    def update(self, overrides: Mapping[str, SettingValue]) -> None:
        """
        Applies multiple overrides at once.

        Args:
            overrides (Mapping[str, SettingValue]): Mapping of setting keys to values.
        """
        for key, value in overrides.items():
            self.set(key, value)

    def resolve(self, key: str, value: Optional[SettingValue]) -> SettingValue:
        """
        Returns `value` unless it is None, otherwise the configured setting.
        """
        if value is None:
            return self.get(key)
        return value

    def as_dict(self) -> Dict[str, SettingValue]:
        """
        Returns a merged view of defaults and overrides.

        Returns:
            Dict[str, SettingValue]: Merged settings dictionary.
        """
        merged = dict(self._defaults)
        merged.update(self._overrides)
        return merged

    def __getitem__(self, key: str) -> SettingValue:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._overrides or key in self._defaults


def resolve_config(config: Optional[SolverConfig]) -> SolverConfig:
    """Return `config`, or a fresh config holding the package defaults."""
    if config is None:
        return SolverConfig()
    return config
