"""
Ebook generator (EPUB, DOCX or PDF through pandoc).

Pipeline:
    1. Collect normalized pages while the driver emits them
    2. Copy assets so pandoc can resolve images
    3. At finish, concatenate pages in navigation order into one
       intermediate HTML file and convert it with pandoc
    4. Remove the intermediate file unless ebook.keep_intermediate
"""

import asyncio
import os
import shutil

from folio import fs
from folio.errors import GeneratorError
from folio.generators.base import BaseGenerator
from folio.parsers.base import slugify


INTERMEDIATE_FILE = "_ebook.html"

FORMATS = {"epub", "docx", "pdf"}


class EbookGenerator(BaseGenerator):
    format_name = "Ebook"

    def __init__(self, book):
        super().__init__(book)
        self.ebook = self.config.ebook
        self.pages = {}

    @property
    def extension(self):
        return "." + self.ebook["format"]

    @property
    def output_file(self):
        name = slugify(self.config.title or "") or "book"
        return os.path.join(self.output_dir, f"{name}{self.extension}")

    @property
    def intermediate_html(self):
        return os.path.join(self.output_dir, INTERMEDIATE_FILE)

    # ── Tooling ────────────────────────────────────────────

    def check_tool(self, name):
        """Check that a required external tool is on PATH."""
        if not shutil.which(name):
            raise GeneratorError(f"{name} not found on PATH")

    def metadata_args(self):
        """Build pandoc --metadata arguments list."""
        args = []
        for key in ["title", "author", "lang", "description"]:
            value = self.config.get(key)
            if value:
                args.extend(["--metadata", f"{key}={value}"])
        return args

    def pandoc_command(self):
        """Full pandoc invocation for the configured format."""
        cmd = ["pandoc"]
        cmd.extend(self.metadata_args())
        cmd.extend([
            "--from", "html",
            "--resource-path", self.output_dir,
            "-o", self.output_file,
        ])

        if self.ebook.get("toc", True):
            cmd.append("--toc")
            cmd.extend(["--toc-depth", str(self.ebook.get("toc_depth", 1))])

        if self.ebook["format"] == "epub":
            css_path = self.resolve(self.ebook.get("css"))
            if css_path:
                cmd.extend(["--css", css_path])
            cover_path = self.resolve(self.ebook.get("cover"))
            if cover_path:
                cmd.extend(["--epub-cover-image", cover_path])
                self.log(f"  Cover: {cover_path}")
        elif self.ebook["format"] == "pdf":
            cmd.append(f"--pdf-engine={self.ebook.get('engine', 'xelatex')}")

        cmd.append(self.intermediate_html)
        return cmd

    async def exec_cmd(self, cmd, label="Command"):
        """Execute a command, raise GeneratorError with its stderr on failure."""
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GeneratorError(f"{cmd[0]} not found") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            print(f"  ✗ {label} failed (exit {process.returncode})")
            lines = stderr.decode("utf-8", "replace").strip().splitlines()[:20]
            detail = "\n".join(f"    {line}" for line in lines)
            raise GeneratorError(f"{label} failed (exit {process.returncode})\n{detail}".rstrip())

    # ── Generator interface ────────────────────────────────

    async def prepare(self):
        if self.ebook["format"] not in FORMATS:
            raise GeneratorError(
                f"Unsupported ebook format '{self.ebook['format']}' "
                f"(expected one of: {', '.join(sorted(FORMATS))})"
            )
        self.check_tool("pandoc")
        if self.ebook["format"] == "pdf":
            self.check_tool(self.ebook.get("engine", "xelatex"))
        await super().prepare()

    async def write_parsed_file(self, page, path):
        self.pages[path] = page

    def assemble(self):
        """Intermediate HTML: every collected page, in navigation order."""
        parts = []
        for path in self.book.navigation:
            page = self.pages.get(path)
            if page is None:
                continue
            body = "\n".join(
                section["content"] for section in page["sections"]
                if section.get("type") == "normal"
            )
            parts.append(f'<section id="{slugify(path)}">\n{body}\n</section>')
        return "<!DOCTYPE html>\n<html>\n<body>\n" + "\n".join(parts) + "\n</body>\n</html>\n"

    async def finish(self):
        await fs.write_file(self.intermediate_html, self.assemble())
        self.log(f"  Input: {len(self.pages)} pages")

        await self.exec_cmd(self.pandoc_command(), f"{self.ebook['format'].upper()} generation")
        print(f"  ✓ {self.output_file}")

        if self.ebook.get("keep_intermediate"):
            self.log(f"  Kept intermediate: {self.intermediate_html}")
        else:
            await fs.remove(self.intermediate_html)
