"""Configuration management for suiterunner."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

CONFIG_NAMES = ["suiterunner.json", ".suiterunner.json"]


class ProjectConfig(BaseModel):
    """Project identification and metadata."""

    name: str = Field(default="", description="Project name for identification")
    description: str = Field(default="", description="Brief description of the test suite")


class ExecutionConfig(BaseModel):
    """How suites are scheduled."""

    parallel: bool = Field(default=True, description="Run sibling tests concurrently")
    max_workers: Optional[int] = Field(
        default=None, description="Worker threads per suite (default: Python's thread pool default)"
    )
    stop_on_error: bool = Field(default=False, description="Stop dispatching after the first error")
    stop_on_failure: bool = Field(default=False, description="Stop dispatching after the first failure")
    stop_on_warning: bool = Field(default=False, description="Stop dispatching after the first warning")

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class ReportConfig(BaseModel):
    """Result reporting configuration."""

    verbose: bool = Field(default=False, description="List skipped, incomplete and risky tests")
    slow_threshold_ms: int = Field(default=500, description="Tests at or above this duration are slow")
    slow_report_length: int = Field(default=10, description="Number of slow tests to report")

    @field_validator("slow_threshold_ms")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        if v < 0:
            raise ValueError("slow_threshold_ms cannot be negative")
        return v

    @field_validator("slow_report_length")
    @classmethod
    def validate_report_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("slow_report_length must be at least 1")
        return v


class SuiteRunnerConfig(BaseModel):
    """Main configuration for suiterunner."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "SuiteRunnerConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "SuiteRunnerConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        current = start_dir.resolve()
        while True:
            for name in CONFIG_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create suiterunner.json or run 'suiterunner init'"
        )

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


def get_default_config() -> SuiteRunnerConfig:
    """Return a default configuration."""
    return SuiteRunnerConfig(project=ProjectConfig(name="my-project"))


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.project.description = "Brief description of your test suite"
    config.to_file(output_path)
    return output_path
