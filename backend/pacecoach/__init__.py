"""pacecoach: scenario-aware analytics for timed, penalty-scored competitions."""

from pacecoach.shared.constants import ANALYTICS_VERSION

__version__ = ANALYTICS_VERSION
