from typing import Dict, Any, List, Optional

from partquote.services.catalog import MATERIAL_DENSITY, ProductFamily, base_material, is_none
from partquote.services.options import OptionSet


class ConfigurationValidator:
    """Legality report for a configuration against its family's option set.

    Rules:
    - unknown product family -> unknown_family
    - any dimension missing or zero -> missing_dimensions (weight and price will be 0)
    - material without a density/cost entry, even after base-material reduction -> unknown_material
    - a chosen value outside the family's legal set (and not "none") -> illegal_<field>
    - quantity below 1 -> invalid_quantity

    Issues never block pricing; unknown values simply cost 0. Issues are returned sorted.
    """

    def _add_issue(self, issues: List[str], issue: str) -> None:
        if issue not in issues:
            issues.append(issue)

    def _check_member(self, issues: List[str], field: str, value: Any, legal: List[Any]) -> None:
        if is_none(value) or not legal:
            return
        if value not in legal and str(value) not in [str(v) for v in legal]:
            self._add_issue(issues, f"illegal_{field}:{value}")

    def validate(self, configuration, options: Optional[OptionSet] = None) -> Dict[str, Any]:
        issues: List[str] = []
        options = options or OptionSet()

        if ProductFamily.parse(configuration.product_group) is None:
            self._add_issue(issues, f"unknown_family:{configuration.product_group}")

        if not (configuration.width > 0 and configuration.height > 0 and configuration.depth > 0):
            self._add_issue(issues, "missing_dimensions")

        material = configuration.material
        if not material:
            self._add_issue(issues, "missing_material")
        elif material not in MATERIAL_DENSITY and base_material(material) not in MATERIAL_DENSITY:
            self._add_issue(issues, f"unknown_material:{material}")

        if configuration.quantity < 1:
            self._add_issue(issues, "invalid_quantity")

        if configuration.din_norm:
            self._check_member(issues, "norm", configuration.din_norm, options.norms)
        if material and options.materials and base_material(material) not in options.materials:
            self._check_member(issues, "material", material, options.materials)
        for field in ("width", "height", "depth"):
            value = getattr(configuration, field)
            if value > 0 and options.dimensions and float(value) not in [float(d) for d in options.dimensions]:
                self._add_issue(issues, f"illegal_{field}:{value:g}")
        self._check_member(issues, "bore", configuration.bore, options.bores)
        if not is_none(configuration.bore) and options.number_of_bores \
                and configuration.number_of_bores not in options.number_of_bores:
            self._add_issue(issues, f"illegal_number_of_bores:{configuration.number_of_bores}")
        self._check_member(issues, "coating", configuration.coating, options.coatings)
        self._check_member(issues, "hardening", configuration.hardening, options.hardening)
        self._check_member(issues, "tolerance_width", configuration.tolerance_width, options.tolerances_width)
        self._check_member(issues, "tolerance_height", configuration.tolerance_height, options.tolerances_height)

        blocking = [i for i in issues if i == "missing_dimensions" or i == "missing_material" or i.startswith("unknown_family")]
        status = "incomplete" if blocking else "complete"
        return {"status": status, "issues": sorted(issues)}
