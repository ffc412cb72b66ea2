"""Agent package: generation provider and assistant gateway."""

from codepilot.agent.gateway import AssistantGateway  # noqa: F401
from codepilot.agent.provider import GeminiProvider, GenerationProvider  # noqa: F401
