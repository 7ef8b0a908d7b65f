"""Measure how long a flag change takes to reach a streaming SDK client.

Public surface:

- :class:`~flag_latency.service.coordinator.LatencyTrialCoordinator`
- :class:`~flag_latency.metrics.RunningAverageAccumulator`
- :class:`~flag_latency.launchdarkly.ControlPlaneMutator`
- :class:`~flag_latency.launchdarkly.LaunchDarklyUpdateClient`
- :class:`~flag_latency.service.app.ProbeApp`
"""

__version__ = "0.1.0"
