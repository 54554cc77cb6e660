"""
Vital sign record and alert payload models.
"""
from pydantic import BaseModel, Field, field_validator


class MeasurementMessage(BaseModel):
    """
    Model for a single comma separated stream message: ``<id>,<ms>,<type>,<value>``.
    """
    subjectId: int = Field(description="Subject ID")
    timestamp: int = Field(description="Measurement time in epoch milliseconds")
    recordType: str = Field(min_length=1, description="Record label, e.g. ECG")
    measurementValue: float = Field(description="Measured value")

    @field_validator("measurementValue", mode="before")
    @classmethod
    def _strip_percent(cls, value):
        if isinstance(value, str):
            return value.replace("%", "")
        return value

    @classmethod
    def from_message(cls, message: str) -> "MeasurementMessage":
        parts = [part.strip() for part in message.split(",")]
        # trailing empty fields are not counted
        while parts and parts[-1] == "":
            parts.pop()
        if len(parts) != 4:
            raise ValueError(f"Expected 4 comma separated fields, got {len(parts)}")
        subject_id, timestamp, record_type, value = parts
        return cls(
            subjectId=subject_id,
            timestamp=timestamp,
            recordType=record_type,
            measurementValue=value,
        )


class AlertPayload(BaseModel):
    """
    Serialized form of an alert.
    """
    subjectId: str = Field(description="Subject ID")
    condition: str = Field(description="Human readable alert condition")
    timestamp: int = Field(description="Alert time in epoch milliseconds")
