"""Result-acquisition loops: retry-until-image and submit/poll/fetch."""

from .job_runner import PollingJobRunner
from .retrying_fetcher import RetryingFetcher

__all__ = ["PollingJobRunner", "RetryingFetcher"]
