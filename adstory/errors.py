"""Errors raised while generating scene assets."""
from __future__ import annotations


class AdStoryError(Exception):
    """Base class for errors scoped to a single generation request."""

    requires_reauth = False


class ProviderUnavailable(AdStoryError):
    """No usable API key; raised before any network call."""


class PreconditionNotMet(AdStoryError):
    """A video was requested for a scene without a ready image."""


class ProviderRequestFailed(AdStoryError):
    """The provider rejected the request or returned nothing usable."""


class ResourceNotFound(AdStoryError):
    """The job or the key vanished mid-request; the key must be re-entered."""

    requires_reauth = True


class JobTimeout(AdStoryError):
    """A video job did not finish within the polling budget."""
