from __future__ import annotations

import csv
import subprocess
from pathlib import Path
from typing import Any

from ..contracts import (
    OcrConfig,
    OcrEngineName,
    OcrError,
    OcrLine,
    OcrLinesResult,
    PixelBox,
)
from .base import OcrEngine


def _normalize_confidence(raw_conf: float | None) -> float | None:
    if raw_conf is None:
        return None
    if raw_conf < 0:
        return None
    # Tesseract TSV is typically 0..100; clamp into [0, 1]
    return max(0.0, min(1.0, raw_conf / 100.0))


def parse_tsv_lines(tsv: str, *, confidence_floor: float = 0.0) -> list[OcrLine]:
    """
    Group word-level TSV rows into lines keyed by (page, block, par, line).

    Rows with malformed geometry are dropped; words below the confidence floor
    are skipped. Line order follows the structural key, word order follows
    word_num.
    """

    words_by_line: dict[tuple[int, int, int, int], list[tuple[int, str, PixelBox, float | None]]] = {}

    reader = csv.DictReader(tsv.splitlines(), delimiter="\t", quoting=csv.QUOTE_NONE)
    for row in reader:
        # level meanings: 1=page,2=block,3=para,4=line,5=word
        try:
            level = int(row.get("level", "") or "0")
        except ValueError:
            continue
        if level != 5:
            continue

        text = (row.get("text") or "").strip()
        if text == "":
            continue

        try:
            key = (
                int(row.get("page_num", "") or "1"),
                int(row.get("block_num", "") or "0"),
                int(row.get("par_num", "") or "0"),
                int(row.get("line_num", "") or "0"),
            )
            word_num = int(row.get("word_num", "") or "0")
            left = int(row.get("left", "") or "0")
            top = int(row.get("top", "") or "0")
            width = int(row.get("width", "") or "0")
            height = int(row.get("height", "") or "0")
        except ValueError:
            continue

        conf_str = row.get("conf", "") or ""
        try:
            raw_conf: float | None = float(conf_str) if conf_str != "" else None
        except ValueError:
            raw_conf = None
        conf = _normalize_confidence(raw_conf)
        if conf is not None and conf < confidence_floor:
            continue

        bbox = PixelBox(x0=left, y0=top, x1=left + width, y1=top + height)
        words_by_line.setdefault(key, []).append((word_num, text, bbox, conf))

    lines: list[OcrLine] = []
    for key in sorted(words_by_line.keys()):
        words = sorted(words_by_line[key], key=lambda w: w[0])
        bbox = words[0][2]
        for w in words[1:]:
            bbox = bbox.union(w[2])
        confs = [w[3] for w in words if w[3] is not None]
        lines.append(
            OcrLine(
                text=" ".join(w[1] for w in words),
                bbox=bbox,
                confidence=(sum(confs) / len(confs)) if confs else None,
            )
        )
    return lines


class TesseractCliEngine(OcrEngine):
    """
    Tesseract OCR via `tesseract` CLI, parsed from TSV output into lines.

    This engine performs no correction and no semantic filtering. Only an
    optional confidence floor is applied.
    """

    def _failure(self, *, meta: dict[str, Any], error: OcrError) -> OcrLinesResult:
        return OcrLinesResult(
            ok=False,
            engine=OcrEngineName.TESSERACT_CLI,
            lines=[],
            errors=[error],
            meta=meta,
        )

    def recognize_lines(self, *, config: OcrConfig, image_file: Path) -> OcrLinesResult:
        meta: dict[str, Any] = {
            "backend": "tesseract",
            "backend_mode": "cli",
            "language": config.language,
            "psm": config.psm,
            "confidence_floor": config.confidence_floor,
        }

        if not image_file.exists():
            return self._failure(
                meta=meta,
                error=OcrError(
                    code="OCR_INPUT_NOT_FOUND",
                    message="Input image file not found",
                    detail={"image_file": str(image_file)},
                ),
            )

        cmd = [
            "tesseract",
            str(image_file),
            "stdout",
            "-l",
            config.language,
        ]
        if config.psm is not None:
            cmd.extend(["--psm", str(config.psm)])
        cmd.append("tsv")

        try:
            proc = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=config.timeout_s,
            )
        except FileNotFoundError:
            return self._failure(
                meta=meta,
                error=OcrError(
                    code="OCR_BACKEND_NOT_INSTALLED",
                    message="tesseract binary not found on PATH",
                    detail={"expected_command": "tesseract"},
                ),
            )
        except subprocess.TimeoutExpired:
            return self._failure(
                meta=meta,
                error=OcrError(
                    code="OCR_TIMEOUT",
                    message="OCR backend timed out",
                    detail={"timeout_s": config.timeout_s},
                ),
            )

        if proc.returncode != 0:
            return self._failure(
                meta=meta,
                error=OcrError(
                    code="OCR_BACKEND_ERROR",
                    message="OCR backend returned a non-zero exit code",
                    detail={
                        "returncode": proc.returncode,
                        "stderr": proc.stderr[-4000:],
                    },
                ),
            )

        lines = parse_tsv_lines(proc.stdout, confidence_floor=config.confidence_floor)
        return OcrLinesResult(
            ok=True,
            engine=OcrEngineName.TESSERACT_CLI,
            lines=lines,
            errors=[],
            meta=meta,
        )
