"""Quickstart example for splitpack.

This example serializes a few values into module files, writes them to a
temporary directory and loads them back.

Note: Hash parts of filenames depend on content and are shown as <hash>.
"""

import asyncio
import tempfile
from pathlib import Path

from splitpack import (
    ChunkNamingError,
    SerializeOptions,
    SourceMapMode,
    SplitContext,
    load_file,
    serialize_entries,
    write_manifest,
)
from splitpack.diagnostics import DiagnosticFormatter, OutputFormat

# Example 1: Shared values
print("=" * 50)
print("Example 1: Shared Values")
print("=" * 50)

settings = {"theme": "dark", "page_size": 20}
manifest = serialize_entries({"home": {"settings": settings}, "admin": {"settings": settings}})
for entry in manifest:
    print(entry.kind, entry.filename)
# Output:
# entry home.py
# entry admin.py
# common common-<hash>.py

print(manifest[0].content)
# Output:
# from splitpack.runtime import load_chunk
# a = load_chunk(__file__, 'common-<hash>.py')
# exports = {'settings': a}

with tempfile.TemporaryDirectory() as directory:
    write_manifest(manifest, directory)
    home = load_file(Path(directory) / "home.py")
    admin = load_file(Path(directory) / "admin.py")
    print(home["settings"] is admin["settings"])
    # Output: True

# Example 2: Reference cycles
print("\n" + "=" * 50)
print("Example 2: Reference Cycles")
print("=" * 50)

node: dict[str, object] = {"name": "root"}
node["self"] = node
manifest = serialize_entries({"tree": node})
print(manifest[0].content)
# Output:
# a = {'name': 'root', 'self': None}
# a['self'] = a
# exports = a

# Example 3: Split points
print("\n" + "=" * 50)
print("Example 3: Split Points")
print("=" * 50)

context = SplitContext()
catalog = context.split({"items": list(range(5))}, "catalog")
load_help = context.split_async({"text": "Press F1"}, "help")
manifest = serialize_entries({"app": {"catalog": catalog, "help": load_help}}, context=context)
for entry in manifest:
    print(entry.kind, entry.filename)
# Output:
# entry app.py
# split help-<hash>.py
# split catalog-<hash>.py

with tempfile.TemporaryDirectory() as directory:
    write_manifest(manifest, directory)
    app = load_file(Path(directory) / "app.py")
    print(app["catalog"])
    # Output: {'items': [0, 1, 2, 3, 4]}
    module = asyncio.run(app["help"]())
    print(module.default)
    # Output: {'text': 'Press F1'}

# Example 4: Options
print("\n" + "=" * 50)
print("Example 4: Options")
print("=" * 50)

options = SerializeOptions(
    common_chunk_name="shared/[hash]",
    source_maps=SourceMapMode.EXTERNAL,
    stats="stats.json",
)
shared = [1, 2, 3]
manifest = serialize_entries({"one": [shared], "two": [shared]}, options=options)
for entry in manifest:
    print(entry.kind, entry.filename)
# Output:
# entry one.py
# entry two.py
# common shared/<hash>.py
# source-map one.py.map
# source-map two.py.map
# source-map shared/<hash>.py.map
# stats stats.json

# Example 5: Errors
print("\n" + "=" * 50)
print("Example 5: Errors")
print("=" * 50)

context = SplitContext()
first = context.split([1], "data")
second = context.split([2], "data")
try:
    serialize_entries(
        {"main": [first, second]},
        context=context,
        options=SerializeOptions(split_chunk_name="[name]"),
    )
except ChunkNamingError as error:
    assert error.diagnostic is not None
    print(DiagnosticFormatter().format(error.diagnostic))
    print(DiagnosticFormatter(output_format=OutputFormat.SIMPLE).format(error.diagnostic))
# Output:
# error[FILENAME_COLLISION]: Chunks resolve to the same filename 'data.py'
#   --> chunk: data.py
#   = names: split:data, split:data
#   = help: Add [hash] to the chunk name pattern or use distinct names
# FILENAME_COLLISION: Chunks resolve to the same filename 'data.py'

print("\n" + "=" * 50)
print("All examples completed successfully!")
print("=" * 50)
