"""
Edit Model.

Shared vocabulary of the rewriting pipeline: where an edit comes from
(`Location`), where text lives (`Span`) and what the upstream analysis wants
changed (`EditRequest` carrying one `Transformation`).

All models are frozen: once the analysis produced them they are only read.
"""

from typing import Annotated, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rust_rewriter.enums import Mutability


class Location(BaseModel):
  """
  A statement or operand position inside one function's mid-level representation.

  This is an opaque key for the unlowering lookup, not a text position.
  """

  model_config = ConfigDict(frozen=True)

  function: str = Field(description="Fully qualified name of the owning function.")
  block: int = Field(ge=0, description="Basic block index.")
  statement: int = Field(ge=0, description="Statement index within the block (terminator = len).")
  operand: Tuple[int, ...] = Field(default=(), description="Path to an operand inside the statement.")

  def __str__(self) -> str:
    suffix = "".join(f".{i}" for i in self.operand)
    return f"{self.function}@bb{self.block}[{self.statement}]{suffix}"


class Span(BaseModel):
  """
  Half-open byte range `[lo, hi)` into the unmodified text of `file`.
  """

  model_config = ConfigDict(frozen=True)

  file: str
  lo: int = Field(ge=0)
  hi: int = Field(ge=0)

  @model_validator(mode="after")
  def _check_order(self) -> "Span":
    if self.hi < self.lo:
      raise ValueError(f"Span end {self.hi} precedes start {self.lo}")
    return self

  @property
  def width(self) -> int:
    return self.hi - self.lo

  def __str__(self) -> str:
    return f"{self.file}:{self.lo}..{self.hi}"

  @property
  def is_empty(self) -> bool:
    return self.hi == self.lo

  def sort_key(self) -> Tuple[str, int, int]:
    """Orders spans by start, enclosing spans before the spans they contain."""
    return (self.file, self.lo, -self.hi)

  def contains(self, other: "Span") -> bool:
    """
    True if `other` lies within this span.

    An empty span sitting exactly on this span's end is treated as following
    it, not as nested in it, so insertions after an item stay top-level.
    """
    if other.file != self.file:
      return False
    if other.lo < self.lo or other.hi > self.hi:
      return False
    if other.is_empty and not self.is_empty and other.lo == self.hi:
      return False
    return True

  def overlaps(self, other: "Span") -> bool:
    """True if the two spans share at least one byte."""
    return other.file == self.file and self.lo < other.hi and other.lo < self.hi


# --- Transformations ---


class CastTo(BaseModel):
  """`e` -> `e as ty`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["cast"] = "cast"
  ty: str


class RemoveCast(BaseModel):
  """`e as T` -> `e`, keeping a `RemovedCast` marker in the tree."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["remove_cast"] = "remove_cast"


class Borrow(BaseModel):
  """`e` -> `&e` / `&mut e`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["borrow"] = "borrow"
  mutability: Mutability = Mutability.NOT


class TakeAddress(BaseModel):
  """`e` -> `core::ptr::addr_of!(e)` / `core::ptr::addr_of_mut!(e)`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["addr_of"] = "addr_of"
  mutability: Mutability = Mutability.NOT


class Dereference(BaseModel):
  """`e` -> `*e`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["deref"] = "deref"


class RawToRef(BaseModel):
  """Raw pointer to reference: `e` -> `&*e` / `&mut *e`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["raw_to_ref"] = "raw_to_ref"
  mutability: Mutability = Mutability.NOT


class CellAsPtr(BaseModel):
  """Address extraction from a `Cell` reference: `e` -> `e.as_ptr()`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["cell_as_ptr"] = "cell_as_ptr"


class CellGet(BaseModel):
  """Read through a `Cell` reference: `e` -> `e.get()`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["cell_get"] = "cell_get"


class RawToCell(BaseModel):
  """Re-wrap a raw pointer as a `Cell` reference: `&*(e as *const std::cell::Cell<T>)`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["raw_to_cell"] = "raw_to_cell"
  pointee: str


class OffsetSlice(BaseModel):
  """
  Pointer offset to slicing: `p.offset(n)` -> `{ let (arr, idx) = (p, n); &arr[idx as usize..] }`.

  The owning expression must expose the pointer and the offset as its first two
  positional children.
  """

  model_config = ConfigDict(frozen=True)

  kind: Literal["offset_slice"] = "offset_slice"
  mutability: Mutability = Mutability.NOT


Transformation = Annotated[
  Union[
    CastTo,
    RemoveCast,
    Borrow,
    TakeAddress,
    Dereference,
    RawToRef,
    CellAsPtr,
    CellGet,
    RawToCell,
    OffsetSlice,
  ],
  Field(discriminator="kind"),
]


class EditRequest(BaseModel):
  """
  One low-level edit fact produced by the pointer/permission analysis.
  """

  model_config = ConfigDict(frozen=True)

  location: Location
  transformation: Transformation
