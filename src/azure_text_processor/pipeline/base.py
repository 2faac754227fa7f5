"""Base protocol for asynchronous pipeline stages."""

from typing import Protocol, TypeVar

from azure_text_processor.core.types import Result
from azure_text_processor.exceptions import TextProcessorError

# Contravariant input (stages can accept supertypes), invariant output
T_In = TypeVar("T_In", contravariant=True)
T_Out = TypeVar("T_Out")
T_Error = TypeVar("T_Error", bound=TextProcessorError)


class BaseAsyncHandler(Protocol[T_In, T_Out, T_Error]):
    """Protocol for asynchronous pipeline stages.

    Each stage performs a single transformation and reports failure as a
    `Failure` value rather than raising across the stage boundary.
    """

    async def handle(self, command: T_In) -> Result[T_Out, T_Error]:
        """Process one input and return a Result."""
        ...
