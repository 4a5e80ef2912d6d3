"""Tesseract OCR tool.

Extracts text from an image inside the workspace and writes it to a
``.txt`` file next to the source (``scan.png`` -> ``scan.txt``). Returns
the root-relative output path and the extracted text.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import BaseModel, Field

from agentgate.exceptions import ExecutionError, NotFoundError, ValidationError
from agentgate.tools.models import ExecutionContext, ToolManifest
from agentgate.tools.runner import CommandRunner


class OcrInput(BaseModel):
    file: str = Field(description="Image file, relative to the workspace root")


class OcrOutput(BaseModel):
    output_file: str
    text: str


def make_ocr_tool(runner: CommandRunner, tesseract_cmd: str = "tesseract") -> ToolManifest:
    """Build the tesseract_ocr manifest bound to a runner and binary."""

    async def _tesseract_ocr(args: OcrInput, context: ExecutionContext) -> dict[str, Any]:
        source = context.workspace_root.resolve(args.file)
        if not source.is_file():
            raise NotFoundError("File", args.file)

        # tesseract appends ".txt" to the output base itself
        output_base = source.with_suffix("")
        output_file = source.with_suffix(".txt")
        if output_file == source:
            raise ValidationError("OCR output would overwrite the source file")

        result = await runner.run_exec(
            [tesseract_cmd, str(source), str(output_base)],
            cwd=context.workspace_root.path,
        )
        if not result.success:
            raise ExecutionError(
                f"OCR failed: {result.error}",
                timed_out=result.timed_out,
                output_exceeded=result.output_exceeded,
            )

        try:
            text = await asyncio.to_thread(output_file.read_text, encoding="utf-8", errors="replace")
        except FileNotFoundError as e:
            raise ExecutionError("Tesseract did not produce an output file") from e

        return {"output_file": context.workspace_root.relative(output_file), "text": text}

    return ToolManifest(
        name="tesseract_ocr",
        description=(
            "Extract text from an image using Tesseract OCR. "
            "Writes the result as a .txt file next to the original."
        ),
        input_schema=OcrInput,
        output_schema=OcrOutput,
        handler=_tesseract_ocr,
        tags={"ocr", "image", "tesseract", "script"},
    )
