"""GitVersion: compute the repository version and publish it as step outputs."""

from __future__ import annotations

import json
import logging
import shutil
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ci_cache.cache.operation import CachedOperation
from ci_cache.core.config import GitVersionConfig
from ci_cache.core.environment import EnvironmentContext
from ci_cache.exceptions import VersionParseError
from ci_cache.outputs import ActionOutputs
from ci_cache.process import CommandRunner
from ci_cache.tools.dotnet import cache_dotnet_global_tools, dotnet_tools_path

log = logging.getLogger(__name__)


class GitVersionInfo(BaseModel):
    """The subset of ``dotnet-gitversion -output json`` published as outputs.

    Field aliases are the JSON property names, which are also the output names.
    """

    model_config = ConfigDict(populate_by_name=True)

    major: int = Field(alias="Major")
    minor: int = Field(alias="Minor")
    patch: int = Field(alias="Patch")
    pre_release_tag: Optional[str] = Field(default=None, alias="PreReleaseTag")
    pre_release_tag_with_dash: Optional[str] = Field(default=None, alias="PreReleaseTagWithDash")
    pre_release_label: Optional[str] = Field(default=None, alias="PreReleaseLabel")
    pre_release_number: Optional[int] = Field(default=None, alias="PreReleaseNumber")
    weighted_pre_release_number: Optional[int] = Field(default=None, alias="WeightedPreReleaseNumber")
    build_meta_data: Optional[Union[int, str]] = Field(default=None, alias="BuildMetaData")
    build_meta_data_padded: Optional[str] = Field(default=None, alias="BuildMetaDataPadded")
    full_build_meta_data: Optional[str] = Field(default=None, alias="FullBuildMetaData")
    major_minor_patch: Optional[str] = Field(default=None, alias="MajorMinorPatch")
    sem_ver: Optional[str] = Field(default=None, alias="SemVer")
    legacy_sem_ver: Optional[str] = Field(default=None, alias="LegacySemVer")
    legacy_sem_ver_padded: Optional[str] = Field(default=None, alias="LegacySemVerPadded")
    assembly_sem_ver: Optional[str] = Field(default=None, alias="AssemblySemVer")
    assembly_sem_file_ver: Optional[str] = Field(default=None, alias="AssemblySemFileVer")
    full_sem_ver: Optional[str] = Field(default=None, alias="FullSemVer")
    informational_version: Optional[str] = Field(default=None, alias="InformationalVersion")
    branch_name: Optional[str] = Field(default=None, alias="BranchName")
    sha: Optional[str] = Field(default=None, alias="Sha")
    short_sha: Optional[str] = Field(default=None, alias="ShortSha")
    nuget_version_v2: Optional[str] = Field(default=None, alias="NuGetVersionV2")
    nuget_version: Optional[str] = Field(default=None, alias="NuGetVersion")
    nuget_pre_release_tag_v2: Optional[str] = Field(default=None, alias="NuGetPreReleaseTagV2")

    def to_outputs(self) -> dict[str, Any]:
        """Output name -> value, with missing values as empty strings."""
        return {
            name: "" if value is None else value
            for name, value in self.model_dump(by_alias=True).items()
        }


def parse_gitversion_output(raw: str) -> GitVersionInfo:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise VersionParseError(f"Error parsing GitVersion JSON: {e}", raw_output=raw) from e
    if not isinstance(data, dict):
        raise VersionParseError("GitVersion output is not a JSON object", raw_output=raw)
    try:
        return GitVersionInfo.model_validate(data)
    except ValidationError as e:
        raise VersionParseError(f"Unexpected GitVersion JSON: {e}", raw_output=raw) from e


def compute_version(
    env: EnvironmentContext,
    runner: CommandRunner,
    executable: str = "dotnet-gitversion",
) -> GitVersionInfo:
    """Run GitVersion against the repository and commit of the current build."""
    raw = runner.run([
        executable,
        "-url", env.repository_url,
        "-b", env.ref,
        "-c", env.sha,
        "-output", "json",
    ])
    return parse_gitversion_output(raw)


def run_gitversion(
    config: GitVersionConfig,
    *,
    env: EnvironmentContext,
    runner: CommandRunner,
    operation: CachedOperation,
    outputs: ActionOutputs,
) -> GitVersionInfo:
    """Ensure the GitVersion tool is installed (cached), then publish the version."""
    outcome = cache_dotnet_global_tools(
        [config.tool_package], env=env, runner=runner, operation=operation
    )
    outcome.raise_for_error()

    installed = shutil.which(config.executable, path=str(dotnet_tools_path(env)))
    info = compute_version(env, runner, installed or config.executable)
    log.info("Computed version %s", info.full_sem_ver or info.sem_ver)
    outputs.set_outputs(info.to_outputs())
    return info
