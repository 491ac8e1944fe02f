"""Error taxonomy for material resolution.

Every error raised while building or registering a material carries the
material identifier and, where one is involved, the offending nuclide, so a
malformed problem description can be traced back to its source.

None of these errors are transient: they describe an inconsistent input and
are never retried.
"""

from __future__ import annotations


class MaterialError(Exception):
    """Base class for all material resolution failures.

    Attributes:
        material_id: Identifier of the material being processed, if known
        nuclide: Offending nuclide, if the failure concerns one constituent

    """

    def __init__(
        self,
        message: str,
        material_id: int | None = None,
        nuclide: str | None = None,
    ):
        self.material_id = material_id
        self.nuclide = nuclide
        self.reason = message
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        context = []
        if self.material_id is not None:
            context.append(f"material {self.material_id}")
        if self.nuclide is not None:
            context.append(f"nuclide '{self.nuclide}'")
        if not context:
            return message
        return f"[{', '.join(context)}] {message}"

    def with_context(
        self,
        material_id: int | None = None,
        nuclide: str | None = None,
    ) -> "MaterialError":
        """Return a copy of this error with missing context filled in."""
        return type(self)(
            self.reason,
            material_id=self.material_id if self.material_id is not None else material_id,
            nuclide=self.nuclide if self.nuclide is not None else nuclide,
        )


class UnderspecifiedDensityError(MaterialError):
    """Relative fractions cannot be resolved without a bulk density."""


class DuplicateConstituentError(MaterialError):
    """A nuclide was added twice under a policy that forbids merging."""


class DuplicateIdentifierError(MaterialError):
    """A material identifier is already taken in the registry."""


class UnknownMaterialError(MaterialError, KeyError):
    """No material with the requested identifier exists."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return Exception.__str__(self)


class MissingNuclideDataError(MaterialError):
    """The nuclear data service has no data for a nuclide at the required temperature."""


class InconsistentUnitMixError(MaterialError):
    """Constituent units of one material cannot be combined."""


class RegistrySealedError(MaterialError):
    """The registry was sealed and no longer accepts materials."""


class InvalidConstituentError(MaterialError, ValueError):
    """A constituent value is negative, non-finite, or zero without being a trace."""


class InvalidPropertyError(MaterialError, ValueError):
    """A material property (id, volume, temperature, density) is out of range."""


class MaterialStateError(MaterialError):
    """An operation is not allowed in the material's current lifecycle state."""
