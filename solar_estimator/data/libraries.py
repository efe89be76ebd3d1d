"""Assumption library loader for Solar Estimator.

Loads published pricing and financial assumptions from JSON files and
applies them to cost, sizing and pro-calculator inputs. Ships NREL ATB
residential PV, LBNL Tracking the Sun and a conservative set.
"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List

from solar_estimator.models.inputs import CostInputs, ProSolarInput, SystemSizingInputs

log = logging.getLogger(__name__)

_DEFAULT_LIBRARY_DIR = Path(__file__).resolve().parent.parent / "resources" / "libraries"

# Library "costs" keys that map onto CostInputs fields
_COST_KEYS = ("cost_per_watt", "rate_escalation", "discount_rate", "analysis_years", "degradation_rate")


class AssumptionLibrary:
    """Manages loading and applying assumption libraries.

    Scans a directory for JSON library files keyed by their ``name``
    field (or file stem).

    Args:
        library_dir: Path to directory containing library JSON files.
            Defaults to the packaged resources/libraries/.
    """

    def __init__(self, library_dir: str = ""):
        self.library_dir = Path(library_dir) if library_dir else _DEFAULT_LIBRARY_DIR
        self._libraries: Dict[str, dict] = {}
        self._load_all()

    def _load_all(self) -> None:
        """Load all JSON files from the library directory."""
        if not self.library_dir.exists():
            log.warning("Library directory %s does not exist", self.library_dir)
            return
        for path in sorted(self.library_dir.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as exc:
                log.warning("Skipping malformed library %s: %s", path.name, exc)
                continue
            key = data.get("name", path.stem)
            self._libraries[key] = data

    def get_library_names(self) -> List[str]:
        """Return sorted list of available library names."""
        return sorted(self._libraries.keys())

    def get_library_metadata(self, name: str) -> Dict[str, str]:
        """Return metadata for a library.

        Args:
            name: Library name as returned by get_library_names().

        Returns:
            Dict with keys: title, source, version, date_published, url, notes.
        """
        lib = self._libraries.get(name, {})
        return {
            "title": lib.get("title", name),
            "source": lib.get("source", ""),
            "version": lib.get("version", ""),
            "date_published": lib.get("date_published", ""),
            "url": lib.get("url", ""),
            "notes": lib.get("notes", ""),
        }

    def _get(self, library_name: str) -> dict:
        if library_name not in self._libraries:
            raise KeyError(f"Library '{library_name}' not found. Available: {self.get_library_names()}")
        return self._libraries[library_name]

    def _financial_overrides(self, library_name: str) -> dict:
        lib = self._get(library_name)
        cost_data = lib.get("costs", {})
        overrides = {key: cost_data[key] for key in _COST_KEYS if key in cost_data}
        financing = lib.get("financing", {})
        if "loan_terms" in financing:
            overrides["loan_terms"] = tuple(tuple(term) for term in financing["loan_terms"])
        if "down_payment" in financing:
            overrides["down_payment"] = financing["down_payment"]
        return overrides

    def apply_library_to_costs(self, costs: CostInputs, library_name: str) -> CostInputs:
        """Return a copy of ``costs`` with the library's assumptions applied.

        Args:
            costs: Base financial assumptions.
            library_name: Name of the library to apply.

        Returns:
            New CostInputs.

        Raises:
            KeyError: If library_name is not found.
        """
        return replace(costs, **self._financial_overrides(library_name))

    def apply_library_to_sizing_inputs(
        self, inputs: SystemSizingInputs, library_name: str,
    ) -> SystemSizingInputs:
        """Apply a library to sizing inputs.

        The library's installed price replaces the itemized breakdown;
        module degradation still comes from the climate or panel catalog.

        Raises:
            KeyError: If library_name is not found.
        """
        costs = self.apply_library_to_costs(inputs.costs, library_name)
        cost_per_watt = self._get(library_name).get("costs", {}).get("cost_per_watt", inputs.cost_per_watt)
        return replace(inputs, costs=costs, cost_per_watt=cost_per_watt)

    def apply_library_to_pro_input(self, inputs: ProSolarInput, library_name: str) -> ProSolarInput:
        """Apply a library's escalation, discount, horizon and loan terms.

        Pro pricing stays regional, so the library price is not used.

        Raises:
            KeyError: If library_name is not found.
        """
        overrides = self._financial_overrides(library_name)
        keys = ("rate_escalation", "discount_rate", "analysis_years", "loan_terms")
        return replace(inputs, **{k: overrides[k] for k in keys if k in overrides})
