"""
JSON generator.

Produces one JSON document per navigated page ("intro.md" → "intro.json")
for feeding into other tools. Assets are not copied.
"""

import json

from folio import fs
from folio.generators.base import BaseGenerator
from folio.page import page_output_path


class JsonGenerator(BaseGenerator):
    format_name = "JSON"

    def _dump(self, data):
        return json.dumps(data, indent=2, ensure_ascii=False)

    async def write_parsed_file(self, page, path):
        output = page_output_path(path, extension=".json")
        document = {
            "page": page,
            "readme": {"path": self.book.readme_file},
            "summary": self.book.summary,
            "glossary": self.book.glossary,
            "options": {
                "title": self.config.title,
                "description": self.config.description,
                "lang": self.config.lang,
            },
        }
        self.log(f"  Page: {path} → {output}")
        await fs.write_file(self.output_path(output), self._dump(document))

    async def transfer_file(self, path):
        pass

    async def transfer_folder(self, path):
        pass

    async def langs_index(self, langs):
        await fs.write_file(self.output_path("langs.json"), self._dump({"langs": langs}))
