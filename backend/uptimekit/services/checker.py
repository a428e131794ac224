"""Checker service - performs HTTP, DNS, and ICMP probes.

Every probe returns an Outcome carrying the wall-clock time it took, even
when it failed. Driver errors never escape `CheckerService.probe`.
"""
import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple
from urllib.parse import urlsplit

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx

from ..config import settings
from ..constants import MonitorType
from ..exceptions import ConfigurationError, ProbeError

logger = logging.getLogger(__name__)

# Example line: "64 bytes from 8.8.8.8: icmp_seq=1 ttl=117 time=14.2 ms"
PING_TIME_PATTERN = re.compile(r'time[=<](\d+\.?\d*)\s*ms')

PingRunner = Callable[[str, int], Awaitable[Tuple[int, str, str]]]
Resolver = Callable[[str, float], Awaitable[List[str]]]


@dataclass(frozen=True)
class Outcome:
    """Raw result of a probe, before classification."""
    success: bool
    elapsed_ms: int
    error: Optional[str] = None

    @classmethod
    def ok(cls, elapsed_ms: int) -> "Outcome":
        return cls(success=True, elapsed_ms=elapsed_ms)

    @classmethod
    def failed(cls, elapsed_ms: int, error: str) -> "Outcome":
        return cls(success=False, elapsed_ms=elapsed_ms, error=error)


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


def extract_hostname(target: str) -> str:
    """Strip scheme, port and path from a target given as a URL."""
    target = target.strip()
    if "://" in target:
        hostname = urlsplit(target).hostname
    else:
        hostname = target.split("/", 1)[0]
    if not hostname:
        raise ConfigurationError(f"Cannot extract a hostname from target '{target}'")
    return hostname


async def run_ping(host: str, timeout: int) -> Tuple[int, str, str]:
    """Send one ICMP echo request with the system ping command."""
    proc = await asyncio.create_subprocess_exec(
        "ping", "-c", "1", "-W", str(timeout), host,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout + 1)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return proc.returncode, stdout.decode(errors="replace"), stderr.decode(errors="replace")


async def resolve_ipv4(hostname: str, lifetime: float) -> List[str]:
    """Resolve a hostname to its set of IPv4 addresses."""
    resolver = dns.asyncresolver.Resolver()
    resolver.lifetime = lifetime
    answer = await resolver.resolve(hostname, "A")
    return [rdata.address for rdata in answer]


class CheckerService:
    """Dispatches a probe to the driver for a monitor's type."""

    def __init__(
        self,
        http_timeout: float = 10,
        dns_timeout: float = 5,
        icmp_timeout: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        resolver: Resolver = resolve_ipv4,
        ping_runner: PingRunner = run_ping,
    ):
        self.http_timeout = http_timeout
        self.dns_timeout = dns_timeout
        self.icmp_timeout = icmp_timeout
        self._transport = transport
        self._resolver = resolver
        self._ping_runner = ping_runner

    def timeout_for(self, monitor_type: str) -> float:
        """Timeout ceiling applied to a probe of the given type."""
        if monitor_type == MonitorType.DNS.value:
            return self.dns_timeout
        if monitor_type == MonitorType.ICMP.value:
            return self.icmp_timeout
        return self.http_timeout

    async def probe(self, monitor_type: Optional[str], target: str) -> Outcome:
        """Probe a target. Unknown or missing types fall back to HTTP."""
        if monitor_type == MonitorType.DNS.value:
            driver = self._check_dns
        elif monitor_type == MonitorType.ICMP.value:
            driver = self._check_icmp
        else:
            if monitor_type and monitor_type != MonitorType.HTTP.value:
                logger.warning(f"Unknown monitor type '{monitor_type}', probing {target} over HTTP")
            driver = self._check_http

        start = time.monotonic()
        try:
            return await driver(target, start)
        except (ProbeError, ConfigurationError) as e:
            return Outcome.failed(_elapsed_ms(start), str(e))
        except asyncio.TimeoutError:
            return Outcome.failed(_elapsed_ms(start), "Probe timed out")
        except Exception as e:
            logger.debug(f"Probe of {target} raised {e.__class__.__name__}: {e}")
            return Outcome.failed(_elapsed_ms(start), str(e) or e.__class__.__name__)

    async def _check_http(self, target: str, start: float) -> Outcome:
        """GET the target; only an HTTP 200 counts as reachable."""
        if not target.startswith(("http://", "https://")):
            target = f"http://{target}"

        try:
            async with httpx.AsyncClient(
                timeout=self.http_timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                # httpx timeouts apply per phase, so bound the whole exchange too
                response = await asyncio.wait_for(client.get(target), timeout=self.http_timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            raise ProbeError(f"Request timeout after {self.http_timeout:g}s")
        except httpx.HTTPError as e:
            raise ProbeError(str(e) or e.__class__.__name__)

        elapsed = _elapsed_ms(start)
        if response.status_code != 200:
            return Outcome.failed(
                elapsed,
                response.reason_phrase or f"HTTP {response.status_code}",
            )
        return Outcome.ok(elapsed)

    async def _check_dns(self, target: str, start: float) -> Outcome:
        """Resolve the hostname to at least one IPv4 address."""
        hostname = extract_hostname(target)
        try:
            addresses = await self._resolver(hostname, self.dns_timeout)
        except dns.resolver.NXDOMAIN:
            raise ProbeError(f"Domain {hostname} does not exist")
        except dns.resolver.NoAnswer:
            raise ProbeError(f"No A record for {hostname}")
        except dns.exception.Timeout:
            raise ProbeError(f"DNS query for {hostname} timed out")
        except dns.exception.DNSException as e:
            raise ProbeError(str(e) or "DNS resolution failed")

        elapsed = _elapsed_ms(start)
        if not addresses:
            return Outcome.failed(elapsed, f"No IPv4 address for {hostname}")
        return Outcome.ok(elapsed)

    async def _check_icmp(self, target: str, start: float) -> Outcome:
        """Send one echo request and use its round-trip time when reported."""
        hostname = extract_hostname(target)
        try:
            returncode, stdout, stderr = await self._ping_runner(hostname, self.icmp_timeout)
        except asyncio.TimeoutError:
            raise ProbeError(f"Ping timeout after {self.icmp_timeout}s")
        except OSError as e:
            raise ProbeError(f"Could not run ping: {e}")

        if returncode != 0:
            detail = stderr.strip() or f"{hostname} did not reply"
            return Outcome.failed(_elapsed_ms(start), detail)

        match = PING_TIME_PATTERN.search(stdout)
        if match:
            return Outcome.ok(int(round(float(match.group(1)))))
        return Outcome.ok(_elapsed_ms(start))


def create_checker() -> CheckerService:
    """Checker configured from application settings."""
    return CheckerService(
        http_timeout=settings.http_timeout_seconds,
        dns_timeout=settings.dns_timeout_seconds,
        icmp_timeout=settings.icmp_timeout_seconds,
    )
