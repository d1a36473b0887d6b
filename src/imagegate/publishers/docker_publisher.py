"""Build, tag and push an image with the docker and aws CLIs."""

from __future__ import annotations

import subprocess
from pathlib import Path

from imagegate.core.exceptions import PublishError
from imagegate.core.schema import PublishResult
from imagegate.publishers.publish_log import get_logger


#: Timeout (seconds) for login commands.
LOGIN_TIMEOUT = 120

#: Max characters of command output included in failure messages.
MAX_ERROR_CHARS = 2000


def _tail(text: str, max_chars: int = MAX_ERROR_CHARS) -> str:
    text = (text or "").strip()
    if len(text) > max_chars:
        return "(output truncated; showing last {} chars)\n{}".format(max_chars, text[-max_chars:])
    return text


def image_ref(endpoint: str, image: str, tag: str) -> str:
    """Fully qualified image reference, e.g. ``public.ecr.aws/x/cbdb/build/rocky9:latest``."""
    ref = f"{image}:{tag}"
    if endpoint:
        ref = f"{endpoint.rstrip('/')}/{ref}"
    return ref


class DockerPublisher:
    """Publish one target: registry logins, ``docker build -t``, ``docker push``."""

    name = "docker"

    def __init__(
        self,
        image: str,
        tag: str = "latest",
        endpoint: str = "",
        aws_region: str = "",
        dockerhub_login: bool = True,
        dockerhub_username: str = "",
        dockerhub_access_token: str = "",
        command_timeout: int = 3600,
        push: bool = True,
        cwd: str | None = None,
        docker_bin: str = "docker",
        aws_bin: str = "aws",
        **_: object,
    ) -> None:
        self._image = image
        self._tag = tag
        self._endpoint = endpoint
        self._region = aws_region
        self._dockerhub_login = dockerhub_login
        self._dockerhub_username = dockerhub_username
        self._dockerhub_token = dockerhub_access_token
        self._timeout = command_timeout
        self._push = push
        self._cwd = cwd
        self._docker = docker_bin
        self._aws = aws_bin

    @property
    def image_ref(self) -> str:
        return image_ref(self._endpoint, self._image, self._tag)

    def _run(self, step: str, cmd: list[str], *, input_text: str | None = None, timeout: int | None = None) -> str:
        """Run one command; return stdout or raise PublishError naming the step."""
        log = get_logger()
        log.debug("[%s] %s", step, " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                capture_output=True,
                text=True,
                cwd=self._cwd,
                timeout=timeout or self._timeout,
            )
        except FileNotFoundError:
            raise PublishError(step, f"command not found: {cmd[0]}")
        except subprocess.TimeoutExpired:
            raise PublishError(step, f"timed out after {timeout or self._timeout}s")
        if result.returncode != 0:
            detail = _tail(result.stderr or result.stdout) or f"exit code {result.returncode}"
            raise PublishError(step, detail)
        if result.stdout:
            log.debug("[%s] stdout:\n%s", step, _tail(result.stdout))
        return result.stdout

    def login_dockerhub(self) -> None:
        """Log in to Docker Hub so base image pulls are not rate limited."""
        if not (self._dockerhub_username and self._dockerhub_token):
            get_logger().info("Docker Hub credentials not set; pulling anonymously")
            return
        self._run(
            "dockerhub login",
            [self._docker, "login", "--username", self._dockerhub_username, "--password-stdin"],
            input_text=self._dockerhub_token,
            timeout=LOGIN_TIMEOUT,
        )

    def login_ecr(self) -> None:
        """Log in to the public ECR endpoint using the aws CLI's credentials."""
        if not self._region:
            raise PublishError("ecr login", "aws_region is not configured (set AWS_REGION)")
        password = self._run(
            "ecr login",
            [self._aws, "ecr-public", "get-login-password", "--region", self._region],
            timeout=LOGIN_TIMEOUT,
        )
        self._run(
            "ecr login",
            [self._docker, "login", "--username", "AWS", "--password-stdin", self._endpoint],
            input_text=password.strip(),
            timeout=LOGIN_TIMEOUT,
        )

    def publish(self, target_name: str, build_context: str) -> PublishResult:
        """Run logins, build and push for one target. Never raises for step failures."""
        log = get_logger()
        ref = self.image_ref
        context = Path(build_context)
        if self._cwd and not context.is_absolute():
            context = Path(self._cwd) / context
        if not context.is_dir():
            return PublishResult(success=False, message=f"Build context not found: {context}", image_ref=ref)

        try:
            if self._dockerhub_login:
                self.login_dockerhub()
            if self._endpoint and self._push:
                self.login_ecr()
            log.info("[%s] docker build -t %s %s", target_name, ref, context)
            self._run("docker build", [self._docker, "build", "-t", ref, str(context)])
            if self._push:
                log.info("[%s] docker push %s", target_name, ref)
                self._run("docker push", [self._docker, "push", ref])
        except PublishError as e:
            log.warning("[%s] %s", target_name, e)
            return PublishResult(success=False, message=str(e), image_ref=ref)

        message = f"pushed {ref}" if self._push else f"built {ref} (push disabled)"
        return PublishResult(success=True, message=message, image_ref=ref)
