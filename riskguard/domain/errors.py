"""Error taxonomy for the assessment pipeline.

Only MissingCredentials and AssessmentPipelineFailure ever reach the caller.
The remaining kinds are recovered where they happen and appear in logs as
the ``error_kind`` field.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    MISSING_CREDENTIALS = "MissingCredentials"
    UPSTREAM_FETCH_FAILURE = "UpstreamFetchFailure"
    MALFORMED_RESPONSE = "MalformedResponse"
    NARRATIVE_GENERATION_FAILURE = "NarrativeGenerationFailure"
    TOOL_EXECUTION_FAILURE = "ToolExecutionFailure"
    ASSESSMENT_PIPELINE_FAILURE = "AssessmentPipelineFailure"


class RiskGuardError(Exception):
    """Base class for failures surfaced to the caller."""

    kind: ErrorKind = ErrorKind.ASSESSMENT_PIPELINE_FAILURE


class MissingCredentialsError(RiskGuardError):
    kind = ErrorKind.MISSING_CREDENTIALS


class AssessmentPipelineError(RiskGuardError):
    kind = ErrorKind.ASSESSMENT_PIPELINE_FAILURE
