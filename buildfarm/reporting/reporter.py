"""
Sends the result of a run to the build farm server.
"""
import asyncio
import logging
from typing import Iterable, NoReturn, Optional, Tuple, Union

import aiohttp

from ..config.build_farm_config import BuildFarmConfig
from ..core.exceptions import ReportDeliveryError
from ..core.models import OK_STAGE, ResultPayload, RunOptions
from .encoding import build_payload


USER_AGENT = "Postgres Build Farm Reporter"
CONTENT_TYPE = "application/x-www-form-urlencoded"


class ResultReporter:
    """
    Builds, signs and delivers the one report a run produces.

    ``send`` is always the last thing a run does: it ends the process by
    raising SystemExit. A delivered OK report exits 0, a delivered failure
    report exits 1, and so does any delivery problem. There is no retry;
    the next scheduled run is the retry. With ``nosend`` nothing is
    delivered and the exit status is 0.
    """

    def __init__(self, config: BuildFarmConfig, options: RunOptions, ts: int):
        self.config = config
        self.options = options
        self.ts = ts
        self.target = config.target.rstrip('/')
        self.logger = logging.getLogger(f"{__name__}.ResultReporter")

    def build_payload(
        self,
        stage: str,
        status: int = 0,
        log: Optional[Iterable[Union[bytes, str]]] = None,
        config_summary: Optional[str] = None
    ) -> ResultPayload:
        return build_payload(
            branch=self.options.branch,
            stage=stage,
            status=status,
            animal=self.config.animal,
            ts=self.ts,
            log=log or [],
            config_summary=config_summary,
            secret=self.config.secret,
        )

    def url_for(self, payload: ResultPayload) -> str:
        return f"{self.target}/{payload.signature}"

    def send(
        self,
        stage: str,
        status: int = 0,
        log: Optional[Iterable[Union[bytes, str]]] = None,
        config_summary: Optional[str] = None
    ) -> NoReturn:
        """
        Report the run result and exit.

        Args:
            stage: Failed stage name, or "OK"
            status: Exit status of the failed stage
            log: Captured log of the failed stage
            config_summary: Configuration summary, None when not applicable
        """
        payload = self.build_payload(stage, status, log, config_summary)

        if self.options.nosend:
            self.print_summary(payload)
            raise SystemExit(0)

        try:
            body = self.deliver(payload)
        except ReportDeliveryError as e:
            self.logger.error(f"Failed to send result: {e}")
            print(f"Query for: stage={payload.stage}&animal={payload.animal}&ts={payload.ts}")
            print(f"Target: {self.url_for(payload)}")
            print(f"Status Line: {e.status_line or e}")
            raise SystemExit(1)

        self.logger.info(f"Result for stage {payload.stage} delivered")
        if self.config.print_success:
            print(f"Success!\n{body}")
        raise SystemExit(0 if payload.is_success else 1)

    def print_summary(self, payload: ResultPayload):
        """What would have been sent, for --nosend runs"""
        print(f"Branch: {payload.branch}")
        if payload.stage == OK_STAGE:
            print("All stages succeeded")
        else:
            print(f"Stage {payload.stage} failed with status {payload.res}")

    def deliver(self, payload: ResultPayload) -> str:
        """
        POST the payload to the collector.

        Returns:
            Response body

        Raises:
            ReportDeliveryError: On a non-2xx response or transport failure
        """
        url = self.url_for(payload)
        try:
            status, reason, body = asyncio.run(self._post(url, payload.content))
        except (aiohttp.ClientError, OSError) as e:
            raise ReportDeliveryError(f"POST to {url} failed: {e}", status_line=str(e)) from e

        if not 200 <= status < 300:
            raise ReportDeliveryError(
                f"POST to {url} returned {status}",
                status_line=f"{status} {reason}"
            )
        return body

    async def _post(self, url: str, content: str) -> Tuple[int, str, str]:
        """Single request; no timeout, a hung collector is left to the scheduler"""
        headers = {
            "Content-Type": CONTENT_TYPE,
            "User-Agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=None)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(
                url,
                data=content.encode("utf-8", "surrogateescape"),
                headers=headers
            ) as response:
                body = await response.text(errors="replace")
                return response.status, response.reason or "", body
