"""Example usage of the deduplication and matching system with Excel files."""

import pandas as pd
import logging
from pathlib import Path
from typing import Optional, Sequence

from tabular_matcher.config.models import (
    ComparisonMode,
    CrossMatchConfig,
    DedupConfig,
    SimilarityAlgorithm
)
from tabular_matcher.config.rules import (
    PassthroughRules,
    OtherColumnsRule,
    PatternRule
)
from tabular_matcher.core import deduplicator, matcher


def deduplicate_excel_file(
    input_file: Path,
    columns: Sequence[str],
    output_file: Optional[Path] = None,
    mode: ComparisonMode = ComparisonMode.FUZZY,
    threshold: float = 0.9
) -> pd.DataFrame:
    """
    Remove duplicate rows from an Excel sheet.

    Args:
        input_file: Path to the Excel file
        columns: Columns that identify a row
        output_file: Optional path for the deduplicated Excel file
        mode: Exact or fuzzy comparison
        threshold: Similarity threshold for fuzzy comparison

    Returns:
        pd.DataFrame: Rows kept after removing every reported duplicate
    """
    logging.info(f"Reading file: {input_file}")
    df = pd.read_excel(input_file)
    records = df.to_dict(orient='records')

    config = DedupConfig(
        columns=columns,
        mode=mode,
        threshold=threshold,
        algorithm=SimilarityAlgorithm.JARO_WINKLER
    )
    result = deduplicator.RecordDeduplicator(config).deduplicate(records)

    logging.info("\nDeduplication Statistics:")
    logging.info(f"Original rows: {result.original_count}")
    logging.info(f"Unique rows: {result.unique_count}")
    logging.info(f"Removed rows: {result.removed_count}")
    for dup in result.duplicates[:20]:
        score = f"{dup.score * 100:.1f}%" if dup.score is not None else '-'
        # +2: header line and 1-based spreadsheet rows
        logging.info(
            f"row {dup.duplicate_index + 2} ({dup.duplicate}) duplicates "
            f"row {dup.original_index + 2} ({dup.original}), score {score}"
        )

    filtered = pd.DataFrame(result.filter_rows(records))

    if output_file:
        logging.info(f"\nSaving results to: {output_file}")
        with pd.ExcelWriter(
            output_file,
            engine='xlsxwriter',
            engine_kwargs={'options': {'strings_to_urls': False}}
        ) as writer:
            filtered.to_excel(writer, index=False)

    return filtered

def match_excel_files(
    base_file: Path,
    match_file: Path,
    base_column: str,
    match_column: str,
    output_file: Optional[Path] = None,
    worker_processes: int = 1
) -> pd.DataFrame:
    """
    Match the rows of one Excel file against another.

    Args:
        base_file: Path to base Excel file
        match_file: Path to match Excel file
        base_column: Column of the base file to compare
        match_column: Column of the match file to compare
        output_file: Optional path for output Excel file
        worker_processes: Number of worker processes

    Returns:
        pd.DataFrame: Export table with one row per base row
    """
    logging.info(f"Reading base file: {base_file}")
    df1 = pd.read_excel(base_file)

    logging.info(f"Reading match file: {match_file}")
    df2 = pd.read_excel(match_file)

    config = CrossMatchConfig(
        source_column=base_column,
        target_column=match_column,
        threshold=0.8,
        algorithm=SimilarityAlgorithm.DICE,
        source_extra_columns=PassthroughRules(
            include_rules=[PatternRule(r'id.*')]
        ),
        target_extra_columns=PassthroughRules(
            include_rules=[OtherColumnsRule()],
            exclude_columns=['internal_id']
        ),
        workers=worker_processes
    )

    logging.info("Starting matching process...")
    report = matcher.CrossFileMatcher(config).match(df1, df2)

    total_records = report.total_file1_rows
    logging.info("\nMatching Statistics:")
    logging.info(f"Total records: {total_records}")
    logging.info(
        f"Matched records: {report.matched_count} "
        f"({report.matched_count / total_records * 100:.1f}%)"
    )

    results = report.to_export_frame(base_column, match_column)
    if output_file:
        logging.info(f"\nSaving results to: {output_file}")
        with pd.ExcelWriter(
            output_file,
            engine='xlsxwriter',
            engine_kwargs={'options': {'strings_to_urls': False}}
        ) as writer:
            results.to_excel(writer, sheet_name='Matches', index=False)

    return results

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    deduplicate_excel_file(
        input_file=Path('data/authors.xlsx'),
        columns=['name', 'surname'],
        output_file=Path('data/authors_deduplicated.xlsx')
    )
    match_excel_files(
        base_file=Path('data/authors.xlsx'),
        match_file=Path('data/catalogue.xlsx'),
        base_column='name',
        match_column='author',
        output_file=Path('data/authors_catalogue_matched.xlsx'),
        worker_processes=4
    )
