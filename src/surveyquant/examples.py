"""
Example registry for a vascular surgery on-call coverage survey.

Builds the reference configuration used in the documentation scenarios:
    - Q15 overall satisfaction (5-point ordinal scale)
    - Q10 typical response time (time brackets -> midpoint minutes)
    - Q3  vascular coverage sources (multi-select checkboxes)
Only respondents whose "Finished" flag is true are eligible.
"""
from surveyquant.filters import FilterPolicy
from surveyquant.model import (
    Comparator,
    MappingTable,
    MultiSelectGroup,
    MultiSelectOption,
    PassthroughField,
    ScalarField,
    TableKind,
    ThresholdIndicator,
)
from surveyquant.registry import MappingRegistry


SATISFACTION = MappingTable(
    name="Satisfaction",
    kind=TableKind.ORDINAL,
    description="Overall satisfaction with vascular on-call coverage",
    values={
        "Very dissatisfied": 1,
        "Somewhat dissatisfied": 2,
        "Neither satisfied nor dissatisfied": 3,
        "Somewhat satisfied": 4,
        "Very satisfied": 5,
        "No Response": None,
    },
)

# Open-ended top bracket uses its lower bound.
RESPONSE_TIME = MappingTable(
    name="ResponseTime",
    kind=TableKind.MIDPOINT,
    description="Typical time until the vascular team responds, in minutes",
    values={
        "Less than 15 minutes": 7.5,
        "15–30 minutes": 22.5,
        "30–60 minutes": 45,
        "1–2 hours": 90,
        "2–4 hours": 180,
        "More than 4 hours": 240,
        "Not applicable": None,
        "No Response": None,
    },
)

VASCULAR_COVERAGE = MultiSelectGroup(
    name="VascularCoverage",
    question="Q3",
    options=(
        MultiSelectOption(column="Q3_1", label="Residency"),
        MultiSelectOption(column="Q3_2", label="Staff"),
        MultiSelectOption(column="Q3_3", label="Locum tenens"),
        MultiSelectOption(column="Q3_4", label="Transfer to another facility", name="Transfer"),
    ),
)

SCHEMA_2024 = [
    "ResponseId", "Finished", "Progress",
    "Q3_1", "Q3_2", "Q3_3", "Q3_4",
    "Q10", "Q15",
]


def build_example_registry(name: str = "Vascular Coverage Survey", version: str = "2024") -> MappingRegistry:
    return MappingRegistry(
        name=name,
        version=version,
        tables=[SATISFACTION, RESPONSE_TIME],
        passthrough=[
            PassthroughField(column="ResponseId"),
            PassthroughField(column="Q15", label="Satisfaction"),
            PassthroughField(column="Q10", label="ResponseTime"),
        ],
        scalars=[
            ScalarField(column="Q15", table="Satisfaction", label="Satisfaction"),
            ScalarField(column="Q10", table="ResponseTime", label="ResponseTime", suffix="Minutes"),
        ],
        indicators=[
            ThresholdIndicator(
                name="HighSatisfaction",
                source="Q15_Satisfaction_Scalar",
                comparator=Comparator.GREATER_EQUAL,
                threshold=4,
            ),
            ThresholdIndicator(
                name="LowSatisfaction",
                source="Q15_Satisfaction_Scalar",
                comparator=Comparator.LESS_EQUAL,
                threshold=2,
            ),
            ThresholdIndicator(
                name="DelayedResponse",
                source="Q10_ResponseTime_Minutes",
                comparator=Comparator.GREATER_THAN,
                threshold=60,
            ),
        ],
        multi_select=[VASCULAR_COVERAGE],
        schemas={version: SCHEMA_2024},
    )


def build_example_policy() -> FilterPolicy:
    return FilterPolicy(column="Finished", eligible_values=("True", "1"))
