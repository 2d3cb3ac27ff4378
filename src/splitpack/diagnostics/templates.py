"""Diagnostic factories for every splitpack error case.

Each static method builds the Diagnostic for one DiagnosticCode, so tests
can compare against the same wording the library raises.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode

__all__ = ["ErrorTemplate"]


class ErrorTemplate:
    """Builds Diagnostics for exceptions raised during a run.

    Exceptions are constructed from these factories only; message wording,
    hints and locations live here and nowhere else.
    """

    @staticmethod
    def unsupported_value(type_name: str, path: str) -> Diagnostic:
        """Value of a type the tracer cannot rebuild.

        Args:
            type_name: Qualified name of the value's type
            path: Access path where the value was found

        Returns:
            Diagnostic for UNSUPPORTED_VALUE
        """
        msg = f"Cannot serialize value of type '{type_name}' at {path}"
        return Diagnostic(
            code=DiagnosticCode.UNSUPPORTED_VALUE,
            message=msg,
            hint="Use dict, list, tuple, types.SimpleNamespace or primitive values",
            path=path,
        )

    @staticmethod
    def unsupported_key(type_name: str, path: str) -> Diagnostic:
        """Dict key that cannot be written as a literal.

        Args:
            type_name: Qualified name of the key's type
            path: Access path of the dict

        Returns:
            Diagnostic for UNSUPPORTED_KEY
        """
        msg = f"Cannot serialize dict key of type '{type_name}' at {path}"
        return Diagnostic(
            code=DiagnosticCode.UNSUPPORTED_KEY,
            message=msg,
            hint="Dict keys must be primitives or tuples of primitives",
            path=path,
        )

    @staticmethod
    def immutable_cycle_head(path: str) -> Diagnostic:
        """Tuple that would need to be patched after construction.

        Args:
            path: Access path of the tuple

        Returns:
            Diagnostic for IMMUTABLE_CYCLE_HEAD
        """
        msg = f"Tuple at {path} is part of a reference cycle and cannot be patched"
        return Diagnostic(
            code=DiagnosticCode.IMMUTABLE_CYCLE_HEAD,
            message=msg,
            hint="Enter the cycle through a mutable container (dict, list, namespace)",
            path=path,
        )

    @staticmethod
    def split_on_primitive(type_name: str) -> Diagnostic:
        """split() or split_async() called on a primitive.

        Args:
            type_name: Type of the primitive

        Returns:
            Diagnostic for SPLIT_ON_PRIMITIVE
        """
        msg = f"Cannot split on a primitive value of type '{type_name}'"
        return Diagnostic(
            code=DiagnosticCode.SPLIT_ON_PRIMITIVE,
            message=msg,
            hint="Wrap the value in a container before splitting",
        )

    @staticmethod
    def split_name_invalid(name: object) -> Diagnostic:
        """Split name that is not a non-empty string.

        Args:
            name: The rejected name

        Returns:
            Diagnostic for SPLIT_NAME_INVALID
        """
        msg = f"Split name must be a non-empty string, got {name!r}"
        return Diagnostic(
            code=DiagnosticCode.SPLIT_NAME_INVALID,
            message=msg,
            hint="Pass name=None to use the default split name",
        )

    @staticmethod
    def foreign_split_thunk(path: str) -> Diagnostic:
        """Thunk created by a different SplitContext.

        Args:
            path: Access path of the thunk

        Returns:
            Diagnostic for FOREIGN_SPLIT_THUNK
        """
        msg = f"Async split thunk at {path} was not created by this run's split context"
        return Diagnostic(
            code=DiagnosticCode.FOREIGN_SPLIT_THUNK,
            message=msg,
            hint="Pass the SplitContext that created the thunk to serialize_entries()",
            path=path,
        )

    @staticmethod
    def unresolvable_cycle(names: tuple[str, ...], path: str) -> Diagnostic:
        """Synchronous cycle joining split points with distinct explicit names.

        Args:
            names: Conflicting split names
            path: Access path of a value on the cycle

        Returns:
            Diagnostic for UNRESOLVABLE_CYCLE
        """
        joined = ", ".join(f"'{name}'" for name in names)
        msg = f"Split points {joined} are part of the same synchronous cycle"
        return Diagnostic(
            code=DiagnosticCode.UNRESOLVABLE_CYCLE,
            message=msg,
            hint="Name only one of the split points, or make one of them async",
            path=path,
            names=names,
        )

    @staticmethod
    def sync_load_cycle(chunks: tuple[str, ...]) -> Diagnostic:
        """Synchronous loop in the chunk load graph.

        Args:
            chunks: Labels of the chunks on the loop

        Returns:
            Diagnostic for SYNC_LOAD_CYCLE
        """
        msg = f"Chunks load each other synchronously: {' -> '.join(chunks)}"
        return Diagnostic(
            code=DiagnosticCode.SYNC_LOAD_CYCLE,
            message=msg,
            chunk=chunks[0] if chunks else None,
            names=chunks,
        )

    @staticmethod
    def filename_collision(filename: str, names: tuple[str, ...]) -> Diagnostic:
        """Two chunks resolved to the same filename.

        Args:
            filename: The colliding filename
            names: Names of the chunks that collided

        Returns:
            Diagnostic for FILENAME_COLLISION
        """
        msg = f"Chunks resolve to the same filename '{filename}'"
        return Diagnostic(
            code=DiagnosticCode.FILENAME_COLLISION,
            message=msg,
            hint="Add [hash] to the chunk name pattern or use distinct names",
            chunk=filename,
            names=names,
        )

    @staticmethod
    def pattern_invalid(option: str, pattern: str, reason: str) -> Diagnostic:
        """Filename pattern rejected at configuration time.

        Args:
            option: Option holding the pattern
            pattern: The rejected pattern
            reason: Why it was rejected

        Returns:
            Diagnostic for PATTERN_INVALID
        """
        msg = f"Invalid {option} pattern {pattern!r}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.PATTERN_INVALID,
            message=msg,
            hint="Patterns must contain [name] or [hash] and must not be absolute",
        )

    @staticmethod
    def entry_name_invalid(name: object, reason: str) -> Diagnostic:
        """Entry name that cannot become a filename.

        Args:
            name: The rejected entry name
            reason: Why it was rejected

        Returns:
            Diagnostic for ENTRY_NAME_INVALID
        """
        msg = f"Invalid entry name {name!r}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.ENTRY_NAME_INVALID,
            message=msg,
            hint="Entry names are relative paths without '..' segments",
        )

    @staticmethod
    def split_filename_invalid(name: str, reason: str) -> Diagnostic:
        """Split name that cannot become a filename.

        Args:
            name: The rejected split name
            reason: Why it was rejected

        Returns:
            Diagnostic for SPLIT_FILENAME_INVALID
        """
        msg = f"Invalid split name {name!r}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.SPLIT_FILENAME_INVALID,
            message=msg,
            hint="Split names are relative paths without '..' segments",
            names=(name,),
        )

    @staticmethod
    def invariant_violated(detail: str) -> Diagnostic:
        """Internal consistency check failed.

        Args:
            detail: What was inconsistent

        Returns:
            Diagnostic for INVARIANT_VIOLATED
        """
        return Diagnostic(
            code=DiagnosticCode.INVARIANT_VIOLATED,
            message=f"Internal chunking invariant violated: {detail}",
            hint="This is a bug in splitpack; please report it with the input values",
        )
