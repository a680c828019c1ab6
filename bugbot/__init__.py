"""
BugBot: autonomous bug reproduction.

BugBot drives a live web application through a browser, lets a language model
choose one UI action per step to reproduce a reported bug, and records every
step in a `RunReport`.

## Usage Examples

```python
from bugbot import RunConfig, RunOrchestrator
from bugbot.agents import ReproductionPolicy
from bugbot.browser import PlaywrightBrowserSession
from bugbot.config import ConfigurationFactory

settings = ConfigurationFactory.get_settings()
config = RunConfig.from_settings(
    settings,
    target_url="http://localhost:3000",
    bug_description="cart count does not increase after clicking Add to Cart",
)
orchestrator = RunOrchestrator(
    config,
    PlaywrightBrowserSession(settings),
    ReproductionPolicy.from_settings(settings),
    settings=settings,
)
report = await orchestrator.run()
```
"""

__version__ = "0.1.0"

from bugbot.orchestration.orchestrator import RunConfig, RunOrchestrator, RunPhase
from bugbot.schemas.models import RunStatus
from bugbot.schemas.report import RunReport

__all__ = [
    "RunConfig",
    "RunOrchestrator",
    "RunPhase",
    "RunReport",
    "RunStatus",
    "__version__",
]
