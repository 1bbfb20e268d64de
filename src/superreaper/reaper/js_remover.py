from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from .super_methods import RemovedMethod


class JSMethodRemover:
    """
    Deletes removed method statements from JavaScript source text.

    Works on the character spans recorded by the pass, so everything outside
    those spans (formatting, comments, other statements) is left untouched.
    """

    def spans_for(self, removed_methods: Iterable[RemovedMethod]) -> Dict[Path, List[Tuple[int, int]]]:
        """
        Groups removal spans by the file they belong to.

        Methods without a script path (in-memory programs) are skipped.
        """
        spans: Dict[Path, List[Tuple[int, int]]] = {}
        for method in removed_methods:
            if not method.file_path:
                continue
            spans.setdefault(Path(method.file_path), []).append((method.start, method.end))
        return spans

    def remove_spans(self, source: str, spans: Iterable[Tuple[int, int]]) -> Tuple[str, int]:
        """
        Removes the given spans from source.

        Args:
            source: Original file content.
            spans: (start, end) character offsets of statements to delete.

        Returns:
            (modified_source, number_of_removals).
        """
        # 1. Grow each span over its line's indentation and trailing newline
        ranges = [self._extend_range_for_newline(source, start, end) for start, end in spans]
        if not ranges:
            return source, 0

        # 2. Merge overlapping ranges (union of intervals)
        ranges.sort(key=lambda x: x[0])
        merged_ranges = []
        current_start, current_end = ranges[0]
        for next_start, next_end in ranges[1:]:
            if next_start < current_end:
                current_end = max(current_end, next_end)
            else:
                merged_ranges.append((current_start, current_end))
                current_start, current_end = next_start, next_end
        merged_ranges.append((current_start, current_end))

        # 3. Apply deletions in DESCENDING order to preserve offsets
        merged_ranges.sort(key=lambda x: x[0], reverse=True)
        modified = source
        for start, end in merged_ranges:
            modified = modified[:start] + modified[end:]

        return modified, len(merged_ranges)

    def rewrite_file(self, file_path: Path, spans: Iterable[Tuple[int, int]]) -> int:
        """
        Removes spans from a file in place.

        Returns:
            Number of removed statements.
        """
        # newline="" keeps \r\n line endings byte-identical
        with open(file_path, "r", encoding="utf-8", newline="") as f:
            source = f.read()
        modified, count = self.remove_spans(source, spans)
        if count:
            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(modified)
        return count

    def _extend_range_for_newline(self, source: str, start: int, end: int) -> Tuple[int, int]:
        """
        Adjusts the range to consume leading indentation and one trailing
        newline, so no blank line is left behind.

        Indentation is only consumed when nothing but whitespace precedes the
        span on its line.
        """
        line_start = start
        while line_start > 0 and source[line_start - 1] in " \t":
            line_start -= 1
        if line_start == 0 or source[line_start - 1] == "\n":
            start = line_start

        length = len(source)
        current = end

        # Trailing spaces before the line break
        while current < length and source[current] in " \t":
            current += 1

        # Consume optional carriage return
        if current < length and source[current] == "\r":
            current += 1

        # Consume newline
        if current < length and source[current] == "\n":
            current += 1
            return (start, current)

        return (start, end)
