from .dto import FormItem, FormSchema, ScaleRange
from .validator import SubmissionValidator, check_no_identifiers, check_schema_conformance

__all__ = [
    "FormItem",
    "FormSchema",
    "ScaleRange",
    "SubmissionValidator",
    "check_no_identifiers",
    "check_schema_conformance",
]
