class MalformedEnvelopeError(ValueError):
    """The provider answered 2xx but the envelope did not carry message text."""
