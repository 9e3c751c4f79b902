"""Command invocation: injecting extracted values into handler functions.

A handler is a plain ``async def`` whose parameters are all annotated with
extractable types. Wrapping it in a Command resolves the extractors once;
``Command.invoke`` runs them in declaration order against a message and
calls the handler with the results.
"""
import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, get_type_hints

from core.errors import CommandError, Rejection
from core.extract import Extractor, Message, MessageParts, resolve_extractor

logger = logging.getLogger(__name__)

HandlerFunc = Callable[..., Awaitable[Any]]
ErrorMapper = Callable[[Rejection], CommandError]


class Parameter(NamedTuple):
    name: str
    keyword_only: bool
    extractor: Extractor


def resolve_parameters(func: HandlerFunc) -> List[Parameter]:
    """Resolve one extractor per declared parameter of ``func``.

    Raises:
        TypeError: A parameter is unannotated, variadic or not extractable
        ValueError: More than one parameter consumes the extension map, or
            the consuming one is not last
    """
    hints = _type_hints(func)
    params: List[Parameter] = []
    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise TypeError(f"{func.__name__}: variadic parameter {param.name!r} is not supported")
        if param.name not in hints:
            raise TypeError(f"{func.__name__}: parameter {param.name!r} needs a type annotation")
        params.append(
            Parameter(
                name=param.name,
                keyword_only=param.kind == param.KEYWORD_ONLY,
                extractor=resolve_extractor(hints[param.name]),
            )
        )

    consuming = [i for i, p in enumerate(params) if p.extractor.consumes]
    if len(consuming) > 1:
        raise ValueError(f"{func.__name__}: only one parameter may take the whole extension map")
    if consuming and consuming[0] != len(params) - 1:
        raise ValueError(f"{func.__name__}: the parameter taking the extension map must be last")
    return params


def _type_hints(func: HandlerFunc) -> Dict[str, Any]:
    hints = get_type_hints(func)
    hints.pop("return", None)
    return hints


class Command:
    """A named handler with its resolved extractors.

    Attributes:
        name: Canonical command name
        help: Help line shown in the generated help document
    """

    def __init__(
        self,
        func: HandlerFunc,
        name: Optional[str] = None,
        help: str = "",  # pylint: disable=redefined-builtin
        error_mapper: Optional[ErrorMapper] = None,
    ) -> None:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"{func.__name__} must be an async function")
        self.func = func
        self.name = name or func.__name__
        self.help = help
        self.error_mapper = error_mapper
        self.parameters = resolve_parameters(func)
        functools.update_wrapper(self, func)

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return await self.func(*args, **kwargs)

    async def invoke(self, message: Message) -> None:
        """Extract every parameter from ``message`` and run the handler.

        Raises:
            CommandError: The first rejection, or whatever an extractor or the
                handler raised, converted to a readable message
        """
        mapper = self.error_mapper or CommandError.from_exception
        parts = MessageParts.from_message(message)

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for param in self.parameters:
            try:
                value = await param.extractor.extract(parts)
            except Rejection as exc:
                logger.debug("Extracting %s for %s failed: %s", param.extractor.label, self.name, exc)
                raise mapper(exc) from exc
            except CommandError:
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.warning("Extractor %s for %s raised %r", param.extractor.label, self.name, exc)
                raise CommandError.from_exception(exc) from exc
            if param.keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)

        try:
            await self.func(*args, **kwargs)
        except CommandError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise CommandError.from_exception(exc) from exc

    def __repr__(self) -> str:
        return f"Command({self.name!r})"


def command(
    help: str,  # pylint: disable=redefined-builtin
    name: Optional[str] = None,
    error_mapper: Optional[ErrorMapper] = None,
) -> Callable[[HandlerFunc], Command]:
    """Turn an async handler into a Command named after the function.

    Example:
        @command(help="`!hello_world` - Prints \\"hello world\\".")
        async def hello_world(tx: MessageSender) -> None:
            await tx.send_notice("Hello World!")
    """
    def decorator(func: HandlerFunc) -> Command:
        return Command(func, name=name, help=help, error_mapper=error_mapper)

    return decorator
