from .fakes import FakeAnalyzer, FakeCrawler, FakeFetcher, word_text
from .metric_delta import histogram_observes, metric_delta, sample_value

__all__ = [
    "FakeAnalyzer",
    "FakeCrawler",
    "FakeFetcher",
    "histogram_observes",
    "metric_delta",
    "sample_value",
    "word_text",
]
