"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Command-line flags (passed as overrides by the CLI)
2. Environment variables (CARGO_CI__SECTION__KEY)
3. Project YAML (cargo-ci.yaml in the workspace root)
4. Global YAML (~/.config/cargo-ci/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CARGO_CI__<SECTION>__<KEY>=<VALUE>

Examples:
    CARGO_CI__LOGGING__LEVEL=DEBUG
    CARGO_CI__COVERAGE__MERGE_DIR=target/cov
    CARGO_CI__PUBLISH__DEPLOY_BRANCH=pages
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

KCOV_ARCHIVE_URL = "https://github.com/SimonKagstrom/kcov/archive/master.zip"


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CARGO_CI__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. -v raises it to INFO, -vv to DEBUG.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CoverageConfig(BaseModel):
    """Coverage collection configuration.

    Env vars:
        CARGO_CI__COVERAGE__CARGO: Cargo executable
        CARGO_CI__COVERAGE__MERGE_DIR: Merged kcov report directory
        CARGO_CI__COVERAGE__KCOV_BUILD_LOCATION: Where kcov is downloaded and built
        CARGO_CI__COVERAGE__KCOV_URL: Source archive used to build kcov
        CARGO_CI__COVERAGE__EXCLUDE_PATTERN: kcov --exclude-pattern value
    """

    cargo: str = Field(
        default="cargo",
        description="Cargo executable. Cargo exports $CARGO to subcommands, which wins.",
    )
    merge_dir: str = Field(
        default="target/kcov",
        description="Directory receiving the merged kcov report.",
    )
    kcov_build_location: str = Field(
        default="target",
        description="Directory in which kcov is built; it ends up in kcov-master/build.",
    )
    kcov_url: str = Field(
        default=KCOV_ARCHIVE_URL,
        description="Source archive fetched when kcov is not installed.",
    )
    exclude_pattern: str | None = Field(
        default=None,
        description="Comma-separated path patterns excluded from the report.",
    )


class PublishConfig(BaseModel):
    """Documentation publishing configuration.

    Env vars:
        CARGO_CI__PUBLISH__DEPLOY_BRANCH: Branch receiving the documentation
        CARGO_CI__PUBLISH__MESSAGE: Commit message
        CARGO_CI__PUBLISH__WORKING_COPY: Local checkout of the deploy branch
    """

    branches: list[str] = Field(
        default_factory=lambda: ["master"],
        description="Only publish documentation built on these CI branches.",
    )
    deploy_branch: str = Field(
        default="gh-pages",
        description="Branch receiving the documentation.",
    )
    message: str = Field(
        default="Automatic Travis documentation build",
        description="Commit message used for each publish.",
    )
    working_copy: str = Field(
        default="target/doc-upload",
        description="Local checkout of the deploy branch. Reused between runs.",
    )
    doc_dir: str | None = Field(
        default=None,
        description="Generated documentation directory. Default: <target dir>/doc.",
    )
    path: str = Field(
        default="",
        description="Sub-path of the deploy branch to publish into.",
    )
    clobber_index: bool = Field(
        default=False,
        description="Delete a root index.html redirect page even if no new one was generated.",
    )
    author_name: str = Field(
        default="cargo-ci",
        description="Commit author when git has no user.name configured.",
    )
    author_email: str = Field(
        default="cargo-ci@localhost",
        description="Commit email when git has no user.email configured.",
    )


class CargoCIConfig(BaseModel):
    """Root configuration for cargo-ci.

    All settings can be configured via:
    1. Environment variables: CARGO_CI__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
