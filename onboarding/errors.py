"""Exception types shared across the onboarding engine.

User input never surfaces as an exception; the flow controller reports
rejected actions as result dicts. These types cover programming errors at
construction time and failures of external providers.
"""


class OnboardingError(Exception):
    """Base class for onboarding engine errors."""


class PayloadError(OnboardingError, ValueError):
    """A payload was constructed with an invalid field combination."""


class ProtocolError(OnboardingError):
    """A transcript would hold two pending decisions of different kinds."""


class UnknownAppError(OnboardingError, LookupError):
    """No registered app has the requested id."""


class ProviderError(OnboardingError):
    """An async provider rejected or timed out."""


class InvalidTransition(OnboardingError):
    """An action does not fit the pending prompt or the step order."""


class ValidationError(OnboardingError, ValueError):
    """An answer is missing a required field or has a malformed one."""
