"""
Summary Response Schemas

Pydantic models describing the JSON a completion must return for each file
family. Fields are snake_case in Python and camelCase on the wire. Every
model keeps unrecognized keys in insertion order (``model_extra``) so new
fields returned by a model survive into the store.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PassthroughModel(BaseModel):
    """Known fields plus an ordered map of any extra keys."""

    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict:
        """Wire-format dict including extra keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Building blocks
# =============================================================================


class Parameter(PassthroughModel):
    name: str
    type: str = Field(default="", description="Declared type of the parameter")


class PublicFunction(PassthroughModel):
    name: str
    purpose: str = Field(description="What the function or method does")
    parameters: list[Parameter] = Field(default_factory=list)
    return_type: str = Field(default="", description="Declared return type")


class PublicConstant(PassthroughModel):
    name: str
    value: str = ""
    type: str = ""


class DatabaseIntegration(PassthroughModel):
    mechanism: str = Field(
        description="How the code talks to a database (e.g. JDBC, ORM, SQL, NONE)"
    )
    description: str = ""
    tables: list[str] = Field(default_factory=list)


class IntegrationPoint(PassthroughModel):
    mechanism: str = Field(description="REST, SOAP, JMS, KAFKA, GRPC and so on")
    name: str
    description: str = ""


class Dependency(PassthroughModel):
    name: str = Field(
        description="Artifact ID for Maven, package name for npm, pip or gradle"
    )
    group_id: Optional[str] = None
    version: Optional[str] = None
    scope: Optional[str] = None


class StoredProcedure(PassthroughModel):
    name: str
    purpose: str = ""
    complexity: str = Field(default="", description="LOW, MEDIUM or HIGH")


class ScheduledJob(PassthroughModel):
    job_name: str
    trigger: str = Field(default="", description="Cron expression, schedule or caller")
    purpose: str = ""
    input_resources: list[str] = Field(default_factory=list)
    output_resources: list[str] = Field(default_factory=list)


# =============================================================================
# File summaries
# =============================================================================


class FileSummary(PassthroughModel):
    """Fields every captured file summary carries."""

    purpose: str = Field(description="A concise description of the file's purpose")
    implementation: str = Field(description="How the file achieves its purpose")


class CodeFileSummary(FileSummary):
    name: Optional[str] = None
    namespace: Optional[str] = None
    kind: Optional[str] = Field(default=None, description="class, interface, module, ...")
    internal_references: list[str] = Field(default_factory=list)
    external_references: list[str] = Field(default_factory=list)
    public_constants: list[PublicConstant] = Field(default_factory=list)
    public_functions: list[PublicFunction] = Field(default_factory=list)
    database_integration: Optional[DatabaseIntegration] = None
    integration_points: list[IntegrationPoint] = Field(default_factory=list)


class SqlFileSummary(FileSummary):
    tables: list[str] = Field(default_factory=list)
    stored_procedures: list[StoredProcedure] = Field(default_factory=list)
    triggers: list[str] = Field(default_factory=list)
    database_integration: Optional[DatabaseIntegration] = None


class BuildManifestSummary(FileSummary):
    dependencies: list[Dependency] = Field(default_factory=list)


class ScriptSummary(FileSummary):
    scheduled_jobs: list[ScheduledJob] = Field(default_factory=list)
