import json

import humps  # type: ignore
from marshmallow import Schema  # type: ignore


class CamelCaseSchema(Schema):
    """Schema that uses camel-case for its external representation
    and snake-case for its internal representation.
    """

    def on_bind_field(self, field_name: str, field_obj) -> None:
        field_obj.data_key = humps.camelize(field_obj.data_key or field_name)

    class Meta:
        ordered = True


class Serializable:
    """
    Marks that a class is serializeable to JSON.
    """

    @classmethod
    def schema(cls):
        """
        Gets the marshmallow serializer for the implementing class.
        """
        schema = getattr(cls, "__schema__", None)
        if schema is None:
            raise Exception(f"{cls.__name__}: not serializable; missing schema")
        return schema

    def to_json(self, camel_case: bool = True) -> str:
        """
        Convert an implementing instance to JSON.

        Values the `json` module cannot encode (datetimes, spatial points,
        nested objects copied off source records) are rendered with `str()`.

        Parameters
        ----------
        camel_case : bool (default True)
            If True, the keys of the returned dict will be camel-cased.
        """
        return json.dumps(self.to_dict(camel_case=camel_case), indent=4, default=str)

    def to_dict(self, camel_case: bool = True):
        """
        Convert an implementing instance to a Python dictionary.

        Parameters
        ----------
        camel_case : bool
            If true, the keys of the returned dict will be camel-cased.
        """
        if camel_case:  # camel case is used by default
            return self.schema().dump(self)
        return {humps.decamelize(k): v for k, v in self.schema().dump(self).items()}
