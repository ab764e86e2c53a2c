"""
Pydantic models for stored records and API payloads.

``user`` and ``server`` each define the record kept by the record
store plus the small request bodies the API accepts for that domain.
Records serialize with camelCase aliases, which is also the format of
the JSON backing files.
"""
