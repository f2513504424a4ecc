"""Exceptions raised by the bou-responder components."""


class BouResponderException(Exception):
    pass


class BouResponderCLIException(BouResponderException):
    pass


class ConfigError(BouResponderException):
    """The startup configuration cannot be used. Always fatal."""


class ConfigMissingError(ConfigError):
    pass


class ConfigMalformedError(ConfigError):
    pass


class ConfigInvalidError(ConfigError):
    pass


class EmptyTokenError(ConfigInvalidError):
    pass


class BrokerError(BouResponderException):
    """The broker connection or subscription is unusable. Always fatal."""


class BrokerConnectionError(BrokerError):
    pass


class SubscriptionError(BrokerError):
    pass


class AcknowledgementError(SubscriptionError):
    pass


class MalformedEventError(BouResponderException):
    """The inbound message carries no usable reply destination."""
