from scanpad.settings import SchemaDict

SCHEMA: list[SchemaDict] = [
    {
        "key": "scanner",
        "title": "Scanner",
        "type": "object",
        "fields": [
            {
                "key": "tool_path",
                "title": "Path to the scanner executable",
                "type": "string",
                "default": "nuclei",
            },
            {
                "key": "target",
                "title": "Default target URL",
                "type": "string",
                "default": "http://localhost:8080",
            },
        ],
    },
    {
        "key": "ui",
        "title": "User interface",
        "type": "object",
        "fields": [
            {
                "key": "theme",
                "title": "Textual theme",
                "type": "string",
                "default": "dracula",
            },
        ],
    },
    {
        "key": "completion",
        "title": "Template completion",
        "type": "object",
        "fields": [
            {
                "key": "enabled",
                "title": "Suggest template fields",
                "type": "boolean",
                "default": True,
            },
            {
                "key": "schema_path",
                "title": "JSON schema with additional field descriptions",
                "help": "Leave empty to use the bundled fields only.",
                "type": "string",
                "default": "",
            },
        ],
    },
]
