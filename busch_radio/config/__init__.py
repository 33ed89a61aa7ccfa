from .attributes import AttributeStore, AttributeValue, ATTRIBUTE_DEFAULTS
from .base import AgentConfig
from .context import ConfigContext
