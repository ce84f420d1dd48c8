"""
Netlify deploy service.

Stages files in a private scratch directory, runs the Netlify CLI against it
and reports the published URL. The scratch directory is removed on every
exit path.
"""
import asyncio
import json
import os
import re
import shlex
import shutil
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from site_engine.logging_config import logger
from site_engine.config import settings
from site_engine.services.errors import (
    ActionInFlightError,
    ConfigurationError,
    DeployFailedError,
    DeployUrlMissingError,
    InvalidDeployRequestError,
    ScratchDirectoryError,
)

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

CONCURRENCY_MODES = ("serialize", "reject", "parallel")


class DeployResult(BaseModel):
    """Outcome of a successful deploy"""
    url: str
    output: str = ""


def parse_deploy_url(stdout: str, url_pattern: str = None) -> Optional[str]:
    """
    Find the published URL in deploy command output.

    ``netlify deploy --json`` prints an object with ``url`` (production) and
    ``deploy_url``; plain output is scanned for the first match of
    ``url_pattern``. Returns None when neither yields a URL.
    """
    pattern = url_pattern or settings.DEPLOY_URL_PATTERN

    try:
        data = json.loads(stdout)
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("url", "deploy_url"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value

    match = re.search(pattern, _ANSI_RE.sub("", stdout))
    return match.group(0) if match else None


class NetlifyDeployer:
    """Deploys a file mapping to one Netlify site"""

    def __init__(
        self,
        site_id: str = None,
        auth_token: Optional[str] = None,
        command: Union[str, Sequence[str]] = None,
        timeout: float = None,
        url_pattern: str = None,
        json_output: bool = None,
        scratch_root: Optional[str] = None,
        concurrency: str = None
    ):
        self.site_id = site_id or settings.NETLIFY_SITE_ID
        if not self.site_id:
            raise ConfigurationError("NETLIFY_SITE_ID not configured")

        self.auth_token = auth_token if auth_token is not None else settings.NETLIFY_AUTH_TOKEN
        command = command or settings.NETLIFY_COMMAND
        self.command: List[str] = shlex.split(command) if isinstance(command, str) else list(command)
        self.timeout = settings.DEPLOY_TIMEOUT if timeout is None else timeout
        self.url_pattern = url_pattern or settings.DEPLOY_URL_PATTERN
        self.json_output = settings.NETLIFY_JSON_OUTPUT if json_output is None else json_output
        self.scratch_root = scratch_root if scratch_root is not None else settings.DEPLOY_SCRATCH_ROOT

        self.concurrency = concurrency or settings.DEPLOY_CONCURRENCY
        if self.concurrency not in CONCURRENCY_MODES:
            raise ConfigurationError(
                f"Unknown deploy concurrency mode: {self.concurrency}",
                details=f"Expected one of {', '.join(CONCURRENCY_MODES)}"
            )
        self._lock = asyncio.Lock()

    def build_command(self, directory: str) -> List[str]:
        args = [*self.command, "deploy", "--prod", f"--dir={directory}", f"--site={self.site_id}"]
        if self.json_output:
            args.append("--json")
        return args

    async def deploy(self, files: Mapping[str, str]) -> DeployResult:
        """Publish ``files`` and return the site URL"""
        if self.concurrency == "parallel":
            return await self._deploy(files)

        if self.concurrency == "reject" and self._lock.locked():
            raise ActionInFlightError(
                "A deploy is already running for this site",
                details=self.site_id
            )

        async with self._lock:
            return await self._deploy(files)

    async def _deploy(self, files: Mapping[str, str]) -> DeployResult:
        start_time = time.time()
        scratch_dir = self._make_scratch_dir()

        try:
            self._write_files(scratch_dir, files)
            stdout, stderr, exit_code = await self._run(self.build_command(scratch_dir))
        finally:
            shutil.rmtree(scratch_dir, ignore_errors=True)

        if exit_code != 0:
            logger.error(
                "Deployment failed",
                site_id=self.site_id,
                exit_code=exit_code,
                stderr=stderr[-2000:]
            )
            raise DeployFailedError(stderr or stdout, exit_code=exit_code)

        url = parse_deploy_url(stdout, self.url_pattern)
        if not url:
            logger.warning("Deploy finished but no URL found in output", site_id=self.site_id)
            raise DeployUrlMissingError(stdout)

        logger.info(
            "Deployment successful",
            site_id=self.site_id,
            url=url,
            files=len(files),
            execution_time=round(time.time() - start_time, 3)
        )
        return DeployResult(url=url, output=stdout)

    def _make_scratch_dir(self) -> str:
        try:
            if self.scratch_root:
                os.makedirs(self.scratch_root, exist_ok=True)
            return tempfile.mkdtemp(prefix="site-deploy-", dir=self.scratch_root)
        except OSError as e:
            logger.error(f"Could not create scratch directory: {str(e)}")
            raise ScratchDirectoryError("Could not create scratch directory", details=str(e))

    @staticmethod
    def _write_files(scratch_dir: str, files: Mapping[str, str]) -> None:
        root = Path(scratch_dir).resolve()

        for name, content in files.items():
            invalid_name = InvalidDeployRequestError(
                f"Invalid file name: {name!r}",
                details="File names must be relative paths inside the site"
            )
            if not name or "\x00" in name or os.path.isabs(name):
                raise invalid_name
            try:
                target = (root / name).resolve()
            except ValueError:
                # unencodable path, e.g. a lone surrogate
                raise invalid_name
            if root not in target.parents:
                raise invalid_name

            try:
                data = content.encode("utf-8")
            except UnicodeEncodeError as e:
                raise InvalidDeployRequestError(
                    f"File {name!r} is not valid UTF-8 text",
                    details=str(e)
                )

            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(data)
            except OSError as e:
                logger.error(f"Error writing file {name}: {str(e)}")
                raise ScratchDirectoryError(f"Could not write {name}", details=str(e))

    async def _run(self, args: List[str]):
        """Run the deploy command, returning (stdout, stderr, exit code)"""
        env: Dict[str, str] = dict(os.environ)
        if self.auth_token:
            env["NETLIFY_AUTH_TOKEN"] = self.auth_token

        logger.info("Running deploy command", command=args[0], site_id=self.site_id)

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env
            )
        except OSError as e:
            logger.error(f"Could not start deploy command: {str(e)}")
            raise DeployFailedError(f"Could not start {args[0]}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.error("Deploy command timed out", timeout=self.timeout)
            raise DeployFailedError(f"Deploy command timed out after {self.timeout}s")

        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            proc.returncode
        )
