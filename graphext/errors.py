from dataclasses import dataclass, field

from dataclasses_json import LetterCase, dataclass_json  # type: ignore


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GraphError(Exception):
    message: str = field(init=False)

    def __str__(self):
        return self.message


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class InvalidArgumentError(GraphError):
    """
    An argument was supplied with an unusable value: a field name or label
    that is `None`, empty, or whitespace, or a batch size below 1.
    """

    argument: str
    reason: str = "cannot be None or empty"

    def __post_init__(self):
        self.message = f"{self.argument} {self.reason}"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class MissingFieldError(GraphError):
    """
    A record does not expose the requested field, or the field holds no value.
    """

    record_type: str
    field_name: str

    def __post_init__(self):
        self.message = (
            f"{self.record_type} does not have expected property: [{self.field_name}]"
        )


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CollectionNotFoundError(GraphError):
    database: str
    collection: str

    def __post_init__(self):
        self.message = (
            f"collection does not exist: [{self.database}.{self.collection}]"
        )
