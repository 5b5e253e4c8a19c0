"""AuthenticatedRemoteResolver: builds a one-shot, token-authenticated push URL."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from gitfolder_sync.models import ErrorKind, PushTarget
from gitfolder_sync.protocols import CommandRunner

# user@host:path (scp-like syntax, no scheme)
_SCP_LIKE_RE = re.compile(r'^[\w.~-]+@[^:/\s]+:')


def is_ssh_remote(url: str) -> bool:
    """Return True for ssh:// URLs and scp-like `git@host:org/repo.git` remotes."""
    return url.startswith(('ssh://', 'git+ssh://', 'ssh+git://')) or bool(_SCP_LIKE_RE.match(url))


def inject_credential(url: str, credential: str) -> str:
    """Put the credential in the userinfo of an HTTPS URL, keeping host, port, path and query."""
    parts = urlsplit(url)
    host = parts.hostname or ''
    if ':' in host:
        host = f'[{host}]'
    if parts.port is not None:
        host = f'{host}:{parts.port}'
    netloc = f"{quote(credential, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact_userinfo(url: str) -> str:
    """Replace any user:password part of a URL with the redaction marker."""
    parts = urlsplit(url)
    if '@' not in parts.netloc:
        return url
    host = parts.netloc.rsplit('@', 1)[1]
    return urlunsplit((parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment))


class AuthenticatedRemoteResolver:
    """Derives a push target from the configured remote without touching repo config."""

    def __init__(self, runner: CommandRunner, remote_name: str = 'origin'):
        """Create a resolver that reads `remote_name`'s URL through the runner."""
        self.runner = runner
        self.remote_name = remote_name
        self._logger = logging.getLogger(__name__)

    def remote_url(self, path: Path) -> str | None:
        result = self.runner.run(Path(path), ('remote', 'get-url', self.remote_name))
        if not result.success:
            self._logger.error(
                "Failed to get URL of remote '%s' in %s: %s",
                self.remote_name, path, result.first_error_line(),
            )
            return None
        return result.stdout.strip() or None

    def resolve_push_target(self, path: Path, credential: str | None) -> PushTarget:
        """Resolve an authenticated push URL for HEAD, or a PushTarget carrying the error kind."""
        if not credential:
            self._logger.error("No token available for push in %s", path)
            return PushTarget(error_kind=ErrorKind.MISSING_CREDENTIAL,
                              message="No Git token configured")

        url = self.remote_url(path)
        if not url:
            return PushTarget(error_kind=ErrorKind.NO_REMOTE_CONFIGURED,
                              message=f"No URL configured for remote '{self.remote_name}'")

        if url.lower().startswith('https://'):
            return PushTarget(url=inject_credential(url, credential), refspec='HEAD')

        if is_ssh_remote(url):
            self._logger.error("SSH remote detected in %s - tokens don't work with SSH", path)
            return PushTarget(error_kind=ErrorKind.UNSUPPORTED_AUTH_SCHEME,
                              message="SSH remote detected - use SSH keys instead of tokens")

        safe_url = redact_userinfo(url)
        self._logger.error("Unsupported remote URL format in %s: %s", path, safe_url)
        return PushTarget(error_kind=ErrorKind.UNSUPPORTED_REMOTE_FORMAT,
                          message=f"Unsupported remote URL format: {safe_url}")
