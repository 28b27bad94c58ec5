"""
Lab panels the vision model can read off a scanned report.

Each panel lists the ``clinical_data`` keys it fills, the prompt sent with
the document, and the coercion applied to every value the model returns.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from trialops.models.enums import ExtractionPanel
from trialops.services.vision.parsing import to_lvef_or_none, to_non_negative_or_none

RULES = """RULES:
- All values must be numbers (float or integer), WITHOUT units.
- If a value is not reported or not clearly readable, set it to null.
- If multiple results exist, choose the value that corresponds to the CURRENT or LATEST visit on this report.
- If a test is explicitly marked as "not done", use null.
- Do not include any other keys or text."""


@dataclass(frozen=True)
class LabPanel:
    name: ExtractionPanel
    description: str
    fields: Tuple[Tuple[str, str], ...]  # (key, human label)
    coerce: Callable[[Any], Optional[float]] = to_non_negative_or_none

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.fields)

    def prompt(self) -> str:
        tests = "\n".join(f"- {key} ({label})" for key, label in self.fields)
        schema = json.dumps({key: None for key in self.keys}, indent=2)
        return (
            f"You are reading {self.description} for a heart failure patient.\n\n"
            f"TASK:\nIdentify the numeric values for the following tests:\n\n{tests}\n\n"
            f"RETURN FORMAT:\nReturn ONLY a JSON object with exactly these keys:\n\n{schema}\n\n"
            f"{RULES}"
        )

    def build_patch(self, raw: Dict[str, Any]) -> Dict[str, Optional[float]]:
        """One entry per panel key, missing or implausible values as None."""
        return {key: self.coerce(raw.get(key)) for key in self.keys}


_SCREENING_EFFICACY_FIELDS = (
    ("nt_pro_bnp", "NT-proBNP, pg/mL"),
    ("serum_tsh", "Serum TSH, µIU/mL"),
    ("serum_homocysteine", "Serum homocysteine, µmol/L"),
)

PANELS: Dict[ExtractionPanel, LabPanel] = {
    ExtractionPanel.echo: LabPanel(
        name=ExtractionPanel.echo,
        description="an echocardiography report",
        fields=(("echo_lvef", "Left Ventricular Ejection Fraction, percent without the % sign"),),
        coerce=to_lvef_or_none,
    ),
    ExtractionPanel.screening_efficacy: LabPanel(
        name=ExtractionPanel.screening_efficacy,
        description="laboratory reports (EFFICACY markers at screening)",
        fields=_SCREENING_EFFICACY_FIELDS,
    ),
    ExtractionPanel.efficacy: LabPanel(
        name=ExtractionPanel.efficacy,
        description="laboratory reports (EFFICACY markers)",
        fields=_SCREENING_EFFICACY_FIELDS + (
            ("gsh", "Glutathione"),
            ("tnf_alpha", "TNF-alpha, pg/mL"),
            ("il6", "Interleukin-6, pg/mL"),
            ("same", "S-adenosylmethionine (SAMe)"),
            ("sah", "S-adenosylhomocysteine (SAH)"),
            ("five_methylcytosine", "5-methylcytosine, %"),
        ),
    ),
    ExtractionPanel.safety: LabPanel(
        name=ExtractionPanel.safety,
        description="laboratory reports (SAFETY: routine blood investigations)",
        fields=(
            ("hb", "Hemoglobin, g/dL"),
            ("rbcs", "Red blood cells, million/µL"),
            ("wbcs", "White blood cells, /mm³"),
            ("polymorphs", "%"),
            ("lymphocytes", "%"),
            ("monocytes", "%"),
            ("platelets", "platelet count, /mm³"),
            ("sgot_ast", "AST/SGOT, U/L"),
            ("sgpt_alt", "ALT/SGPT, U/L"),
            ("bilirubin_total", "mg/dL"),
            ("bilirubin_direct", "mg/dL"),
            ("bilirubin_indirect", "mg/dL"),
            ("bun", "Blood urea nitrogen, mg/dL"),
            ("serum_creatinine", "mg/dL"),
            ("total_cholesterol", "mg/dL"),
            ("hdl", "mg/dL"),
            ("ldl", "mg/dL"),
            ("triglycerides", "mg/dL"),
        ),
    ),
}


LEAD_PROMPT = """You are analyzing a clinical document or echocardiography report.

Extract exactly:
- firstName: patient's first name
- middleName: patient's middle name or null if no middle name
- lastName: patient's last name
- lvef: numeric LVEF percentage, e.g. 35 (no % symbol). Use null if you cannot find it.

Rules:
- If the name appears as "First Middle Last", split accordingly.
- If only two name parts appear, treat them as firstName and lastName; middleName = null.
- If there are multiple LVEF values, choose the final reported / most clinically relevant one.
- Return ONLY a single JSON object with the shape:
{"firstName": "John", "middleName": null, "lastName": "Doe", "lvef": 35}
No extra commentary or text."""


def get_panel(name: str) -> LabPanel:
    return PANELS[ExtractionPanel(name)]
