"""
Aliases for the JSON values handed to and produced by the library.
"""
import typing

JSONScalar = typing.Union[str, int, float, bool]
JSONObject = typing.Mapping[str, typing.Any]
MutableJSONObject = typing.Dict[str, typing.Any]
JSONValue = typing.Union[JSONScalar, typing.List[typing.Any], JSONObject, None]
