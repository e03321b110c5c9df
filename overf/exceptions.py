import contextlib
import copy
import textwrap
import types

from overf.settings import OVERF_ERROR_CONTEXT_LINES, OVERF_ERROR_LINE_NUMBERS


class ExceptionList(list):
    """
    List subclass for storing exceptions.
    To deliver multiple expansion errors to the user at once, append each
    raised Exception to this list and call raise_if_not_empty once the task
    is completed.
    """

    def raise_if_not_empty(self):
        if len(self) == 1:
            raise self[0]
        elif len(self) > 1:
            err_msg = ["Expansion failed with the following errors:"]
            err_msg += [f"{type(i).__name__}: {i}" for i in self]
            raise OverfException("\n\n".join(err_msg))


class _BaseOverfException(Exception):
    """
    Base overf exception class.

    This exception is not raised directly. Other exceptions inherit it in
    order to display source annotations in the error string.
    """

    def __init__(self, message="Error Message not found.", *items, hint=None):
        """
        Exception initializer.

        Arguments
        ---------
        message : str
            Error message to display with the exception.
        *items : ast.AST | Tuple[str, ast.AST], optional
            Annotated python ast node(s), or tuple of (description, node)
            indicating where the exception occurred. Source annotations are
            generated in the order the nodes are given.
        """
        self._message = message
        self._hint = hint

        # strip out None sources so that None can be passed as a valid
        # annotation (in case it is only available optionally)
        self.annotations = [k for k in items if k is not None]

    def with_annotation(self, *annotations):
        """
        Creates a copy of this exception with a modified source annotation.

        Arguments
        ---------
        *annotations : ast.AST | Tuple[str, ast.AST]
            AST node(s), or tuple of (description, node) to use in the annotation.

        Returns
        -------
        A copy of the exception with the new node offset(s) applied.
        """
        exc = copy.copy(self)
        exc.annotations = list(annotations)
        return exc

    @property
    def hint(self):
        # some hints are expensive to compute, so we wait until the last
        # minute when the formatted message is actually requested to compute
        # them.
        if callable(self._hint):
            return self._hint()
        return self._hint

    @property
    def message(self):
        msg = self._message
        if self.hint:
            msg += f"\n\n  (hint: {self.hint})"
        return msg

    @property
    def lineno(self):
        if not self.annotations:
            return None
        node = self.annotations[0]
        node = node[1] if isinstance(node, tuple) else node
        return getattr(node, "lineno", None)

    def format_annotation(self, value):
        from overf.utils import annotate_source_code

        node = value[1] if isinstance(value, tuple) else value
        node_msg = ""

        try:
            source_annotation = annotate_source_code(
                # add trailing space because EOF exceptions point one char beyond the length
                f"{node.full_source_code} ",
                node.lineno,
                node.col_offset,
                context_lines=OVERF_ERROR_CONTEXT_LINES,
                line_numbers=OVERF_ERROR_LINE_NUMBERS,
            )
        except Exception:
            # necessary for certain types of syntax exceptions, and for
            # nodes which were never annotated with their source
            return None

        path = getattr(node, "module_path", None)
        if path not in (None, "<unknown>"):
            node_msg = f'{node_msg}file "{path}:{node.lineno}", '

        fn_name = getattr(node, "function_name", None)
        if fn_name is not None:
            node_msg = f'{node_msg}function "{fn_name}", '

        col_offset_str = "" if node.col_offset is None else str(node.col_offset)
        node_msg = f"{node_msg}line {node.lineno}:{col_offset_str} \n{source_annotation}\n"

        if isinstance(value, tuple):
            # if annotation includes a message, apply it at the start and further indent
            node_msg = textwrap.indent(node_msg, "  ")
            node_msg = f"{value[0]}\n{node_msg}"

        node_msg = textwrap.indent(node_msg, "  ")
        return node_msg

    def __str__(self):
        if not self.annotations:
            return self.message

        annotation_list = [self.format_annotation(value) for value in self.annotations]
        annotation_list = [s for s in annotation_list if s is not None]
        if not annotation_list:
            return self.message

        annotation_msg = "\n".join(annotation_list)
        return f"{self.message}\n\n{annotation_msg}"


class OverfException(_BaseOverfException):
    pass


class SyntaxException(OverfException):

    """Invalid syntax."""

    def __init__(self, message, source_code, lineno, col_offset, hint=None):
        item = types.SimpleNamespace()
        item.lineno = lineno
        item.col_offset = col_offset
        item.full_source_code = source_code
        super().__init__(message, item, hint=hint)


class PragmaException(SyntaxException):
    """Invalid pragma directive."""


class VersionException(SyntaxException):
    """Version string is malformed or incompatible with this version of overf."""


class ParserException(Exception):
    """Source cannot be parsed."""


class InvalidInvocation(OverfException):
    """Malformed nested policy-block invocation."""


class PropagationException(OverfException):
    """Propagating arithmetic where the enclosing scope cannot return an absent value."""


class OverfInternalException(_BaseOverfException):
    """
    Base overf internal exception class.

    This exception is not raised directly, it is subclassed by other internal
    exceptions.

    Internal exceptions are raised as a means of telling the user that the
    expander has panicked, and that filing a bug report would be appropriate.
    """

    def __str__(self):
        return (
            f"{super().__str__()}\n\n"
            "This is an unhandled internal error in overf. "
            "Please create an issue to notify the developers!"
        )


class CompilerPanic(OverfInternalException):
    """General unexpected error during expansion."""


@contextlib.contextmanager
def tag_exceptions(node, fallback_exception_type=CompilerPanic, note=None):
    try:
        yield
    except _BaseOverfException as e:
        if not e.annotations:
            tb = e.__traceback__
            raise e.with_annotation(node).with_traceback(tb) from None
        raise e from None
    except Exception as e:
        tb = e.__traceback__
        fallback_message = f"unhandled exception {e}"
        if note:
            fallback_message += f", {note}"
        raise fallback_exception_type(fallback_message, node).with_traceback(tb)
