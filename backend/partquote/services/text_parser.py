from typing import Any, Dict, List, Optional
import json
import logging
import re

from partquote.services.mapping import DIMENSIONS_RE, MATERIAL_TOKEN_RE, parse_number

logger = logging.getLogger(__name__)

# table headers recognised in pasted order/RFQ excerpts
HEADER_KEYWORDS = ("artikel", "menge", "gewicht")
HEADER_FIELDS = {
    "pos": "pos",
    "position": "pos",
    "artikel": "article_name",
    "artikelbezeichnung": "article_name",
    "bezeichnung": "article_name",
    "menge": "qty",
    "einheit": "unit",
    "me": "unit",
    "gewicht": "weight",
    "material": "material",
    "werkstoff": "material",
    "liefertermin": "delivery_date",
}


class PastedTextParser:
    """Turns pasted order text into raw item mappings.

    Tried in order: JSON (array or object), JSON after light repair, one JSON object
    per line, a tab/multi-space table with a German header row, a single free line
    ``pos article qty unit weight``.
    """

    def _clean_json_text(self, text: str) -> str:
        cleaned = re.sub(r"[\r\n]+", "", text)
        cleaned = re.sub(r",(\s*[}\]])", r"\1", cleaned)
        cleaned = re.sub(r"([{\[,]\s*)([A-Za-z0-9_]+)\s*:", r'\1"\2":', cleaned)
        cleaned = cleaned.strip().rstrip(",")
        if not cleaned.startswith("["):
            cleaned = "[" + cleaned + "]"
        return cleaned

    def _as_items(self, data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, dict):
            if isinstance(data.get("requested_items"), list):
                data = data["requested_items"]
            else:
                data = [data]
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    def _parse_json(self, text: str) -> Optional[List[Dict[str, Any]]]:
        try:
            return self._as_items(json.loads(text))
        except ValueError:
            pass
        try:
            return self._as_items(json.loads(self._clean_json_text(text)))
        except ValueError:
            logger.debug("Text is not repairable JSON")

        items = []
        for line in filter(None, (l.strip() for l in text.splitlines())):
            try:
                items.extend(self._as_items(json.loads(line)))
            except ValueError:
                continue
        return items or None

    def _parse_table(self, lines: List[str]) -> List[Dict[str, Any]]:
        splitter = (lambda s: s.split("\t")) if "\t" in lines[0] else (lambda s: re.split(r"\s{2,}", s))
        headers = [h.strip().lower() for h in splitter(lines[0])]
        if len(headers) <= 3 or not any(k in h for h in headers for k in HEADER_KEYWORDS):
            return []
        items = []
        for line in lines[1:]:
            values = [v.strip() for v in splitter(line)]
            item: Dict[str, Any] = {}
            for header, value in zip(headers, values):
                if value:
                    item[HEADER_FIELDS.get(header, header)] = value
            if item:
                items.append(item)
        return items

    def _parse_line(self, line: str) -> List[Dict[str, Any]]:
        parts = line.split()
        if len(parts) < 5:
            return []
        # quantity is the last number followed by a unit word; article names carry numbers too
        candidates = [i for i in range(2, len(parts) - 1)
                      if re.fullmatch(r"\d+(?:[.,]\d+)?", parts[i]) and parts[i + 1].isalpha()]
        if not candidates:
            return []
        qty_index = candidates[-1]
        item: Dict[str, Any] = {
            "pos": parts[0],
            "article_name": " ".join(parts[1:qty_index]),
            "qty": parse_number(parts[qty_index], 1),
            "unit": parts[qty_index + 1],
        }
        for p in parts[qty_index + 2:]:
            if re.fullmatch(r"\d+(?:[.,]\d+)?", p):
                item["weight"] = parse_number(p)
                break
        dims = DIMENSIONS_RE.search(item["article_name"])
        if dims and dims.group(3):
            item["dimensions"] = f"{dims.group(1)}x{dims.group(2)}x{dims.group(3)}"
            material = MATERIAL_TOKEN_RE.search(item["article_name"])
            if material:
                item["material"] = material.group(1)
        return [item]

    def parse(self, text: str) -> List[Dict[str, Any]]:
        if not text or not isinstance(text, str) or not text.strip():
            raise ValueError("No text provided or invalid format")

        items = self._parse_json(text)
        if items:
            logger.info("Parsed %s items from JSON text", len(items))
            return items

        lines = [l for l in text.splitlines() if l.strip()]
        items = self._parse_table(lines)
        if items:
            logger.info("Parsed %s items from text table", len(items))
            return items

        if len(lines) == 1:
            items = self._parse_line(lines[0].strip())
            if items:
                return items

        raise ValueError("Could not parse the input format")
