"""Health checks for docker, the aws CLI, and registry credentials."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from imagegate.core.config import ConfigManager


@dataclass
class HealthCheckResult:
    """Result of a single health check."""

    name: str
    ok: bool
    message: str = ""
    suggestion: str = ""


def _run_cmd(cmd: list[str], timeout: int = 10) -> tuple[bool, str]:
    """Run command, return (success, output_or_error)."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if result.returncode == 0:
            return True, (result.stdout or "").strip()
        return False, result.stderr or result.stdout or f"exit code {result.returncode}"
    except FileNotFoundError:
        return False, "command not found"
    except subprocess.TimeoutExpired:
        return False, "timeout"
    except OSError as e:
        return False, str(e)


class HealthChecker:
    """Run health checks for the tools and settings the docker publisher needs."""

    def __init__(self, config: ConfigManager | None = None) -> None:
        self._config = config or ConfigManager()

    def check_docker(self) -> HealthCheckResult:
        """Check that the docker CLI is installed and the daemon answers."""
        ok, out = _run_cmd(["docker", "version", "--format", "{{.Server.Version}}"])
        if ok:
            return HealthCheckResult(name="docker", ok=True, message=f"docker server {out or 'OK'}")
        return HealthCheckResult(
            name="docker",
            ok=False,
            message=out.strip() or "docker version failed",
            suggestion="Install Docker and make sure the daemon is running and reachable by this user.",
        )

    def check_aws(self) -> HealthCheckResult:
        """Check that the aws CLI is available (needed for ECR public login)."""
        if not self._config.config.registry.endpoint:
            return HealthCheckResult(name="aws", ok=True, message="no registry endpoint configured; aws CLI not required")
        ok, out = _run_cmd(["aws", "--version"])
        if ok:
            return HealthCheckResult(name="aws", ok=True, message=out or "OK")
        return HealthCheckResult(
            name="aws",
            ok=False,
            message=out.strip() or "aws --version failed",
            suggestion="Install AWS CLI v2 (https://aws.amazon.com/cli/) and configure credentials.",
        )

    def check_credentials(self) -> HealthCheckResult:
        """Check that registry settings and Docker Hub credentials are present."""
        cfg = self._config.config
        creds = self._config.credentials()
        missing: list[str] = []
        if cfg.registry.endpoint and not cfg.registry.aws_region:
            missing.append("AWS_REGION")
        if cfg.registry.dockerhub_login:
            for key in ("DOCKERHUB_USERNAME", "DOCKERHUB_ACCESS_TOKEN"):
                if key.lower() not in creds:
                    missing.append(key)
        if missing:
            return HealthCheckResult(
                name="credentials",
                ok=False,
                message=f"Missing: {', '.join(missing)}",
                suggestion="Set the missing variables in the environment or .env (CI: repository secrets).",
            )
        endpoint = cfg.registry.endpoint or "(docker default registry)"
        return HealthCheckResult(name="credentials", ok=True, message=f"registry endpoint: {endpoint}")

    def check_all(self, *, skip_docker: bool = False, skip_aws: bool = False) -> list[HealthCheckResult]:
        """Run all enabled checks."""
        results: list[HealthCheckResult] = []
        if not skip_docker:
            results.append(self.check_docker())
        if not skip_aws:
            results.append(self.check_aws())
        results.append(self.check_credentials())
        return results
