"""
Scoresheet Export

Generate PDF scoresheets for finished matches.
Also supports CSV export for data analysis.
"""

import csv
import logging
from xml.sax.saxutils import escape
from pathlib import Path
from typing import Iterator, Optional, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.platypus.doctemplate import LayoutError
from reportlab.lib.enums import TA_CENTER

from config import APP_NAME
from models.match import GameMode, MatchOutcome, Side
from models.schemas import MatchRecord, RoundRecord

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M"

HEADER_STYLE = [
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
    ('GRID', (0, 0), (-1, -1), 1, colors.black),
    ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
    ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ('TOPPADDING', (0, 0), (-1, -1), 6),
]


def describe_winner(record: MatchRecord) -> str:
    """Human-readable result line for a match."""
    if record.outcome == MatchOutcome.TIED:
        return "Tie"
    if record.outcome == MatchOutcome.ABANDONED:
        return "Abandoned"
    if record.winner == Side.TEAM_A:
        return record.team_a.name
    if record.winner == Side.TEAM_B:
        return record.team_b.name
    return "-"


def iter_rounds(record: MatchRecord) -> Iterator[tuple[Optional[int], RoundRecord]]:
    """
    Yield (game number, round) for every round of the match.

    The game number is None in fixed-rounds mode. In point-race mode the
    rounds of an unfinished game carry the next game number.
    """
    if record.mode != GameMode.POINT_RACE:
        for r in record.rounds:
            yield None, r
        return

    for game in record.games:
        for r in game.rounds:
            yield game.game_number, r
    for r in record.rounds:
        yield len(record.games) + 1, r


class ScoresheetExporter:
    """
    Generate scoresheets from a MatchRecord.

    Supports:
    - PDF scoresheets (one table per game in point-race matches)
    - CSV data export, one row per round
    """

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self) -> None:
        """Set up custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='SheetTitle',
            parent=self.styles['Heading1'],
            fontSize=24,
            alignment=TA_CENTER,
            spaceAfter=20,
        ))

        self.styles.add(ParagraphStyle(
            name='SheetSubtitle',
            parent=self.styles['Normal'],
            fontSize=14,
            alignment=TA_CENTER,
            spaceAfter=10,
        ))

        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=14,
            spaceBefore=15,
            spaceAfter=10,
        ))

    def _rounds_table(self, record: MatchRecord, rounds: list[RoundRecord]) -> Table:
        a, b = record.team_a.name, record.team_b.name
        data = [["Round", f"{a} Pts", f"{a} 20s", f"{b} Pts", f"{b} 20s", "Hammer"]]
        for r in rounds:
            if r.team_a.had_hammer:
                hammer = a
            elif r.team_b.had_hammer:
                hammer = b
            else:
                hammer = "-"
            data.append([
                str(r.round_number),
                str(r.team_a.points_after_round),
                str(r.team_a.bonus_this_round),
                str(r.team_b.points_after_round),
                str(r.team_b.bonus_this_round),
                hammer,
            ])

        table = Table(data, colWidths=[1.6*cm, 2.8*cm, 2.2*cm, 2.8*cm, 2.2*cm, 3.4*cm])
        table.setStyle(TableStyle(HEADER_STYLE + [('FONTSIZE', (0, 0), (-1, -1), 9)]))
        return table

    def export_pdf(self, record: MatchRecord, filepath: Union[str, Path]) -> bool:
        """
        Export a match scoresheet as PDF.

        Args:
            record: The finished (or abandoned) match
            filepath: Output file path

        Returns:
            True if export successful, False otherwise
        """
        try:
            doc = SimpleDocTemplate(
                str(filepath),
                pagesize=A4,
                rightMargin=1*cm,
                leftMargin=1*cm,
                topMargin=1*cm,
                bottomMargin=1*cm,
            )

            config = record.configuration
            elements = []

            # Title
            elements.append(Paragraph(
                escape(config.event_title or f"{APP_NAME} Scoresheet"),
                self.styles['SheetTitle']
            ))

            subtitle = "Point Race" if record.mode == GameMode.POINT_RACE else "Fixed Rounds"
            if config.match_phase:
                subtitle = f"{escape(config.match_phase)} | {subtitle}"
            elements.append(Paragraph(subtitle, self.styles['SheetSubtitle']))

            elements.append(Spacer(1, 0.5*cm))

            # Match info table
            if record.mode == GameMode.POINT_RACE:
                format_line = (f"{config.points_to_win} points, win by {config.min_points_difference}, "
                               f"best of {config.games_to_win_match * 2 - 1} games")
            else:
                format_line = f"{config.rounds_to_play} rounds"

            match_info = [
                ["Date:", record.started_at.strftime(DATE_FORMAT)],
                ["Duration:", f"{record.duration_seconds // 60} min"],
                ["Format:", format_line],
                ["Game Type:", config.game_type.value.title()],
            ]

            info_table = Table(match_info, colWidths=[3*cm, 10*cm])
            info_table.setStyle(TableStyle([
                ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
                ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
                ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
            ]))
            elements.append(info_table)

            # Teams
            elements.append(Paragraph("Teams", self.styles['SectionHeader']))

            score_label = "Games Won" if record.mode == GameMode.POINT_RACE else "Points"
            teams_data = [
                ["", "Team", score_label, "20s"],
                ["A", record.team_a.name, str(record.team_a_score), str(record.bonus_total(Side.TEAM_A))],
                ["B", record.team_b.name, str(record.team_b_score), str(record.bonus_total(Side.TEAM_B))],
            ]
            teams_table = Table(teams_data, colWidths=[1.5*cm, 7*cm, 3*cm, 2*cm])
            teams_table.setStyle(TableStyle(HEADER_STYLE + [
                ('TEXTCOLOR', (1, 1), (1, 1), colors.HexColor(record.team_a.color)),
                ('TEXTCOLOR', (1, 2), (1, 2), colors.HexColor(record.team_b.color)),
            ]))
            elements.append(teams_table)

            # Round results
            if record.mode == GameMode.POINT_RACE:
                for game in record.games:
                    winner = record.team_a.name if game.winner == Side.TEAM_A else record.team_b.name
                    elements.append(Paragraph(
                        f"Game {game.game_number}: won by {escape(winner)}",
                        self.styles['SectionHeader']
                    ))
                    elements.append(self._rounds_table(record, list(game.rounds)))
                if record.rounds:
                    elements.append(Paragraph(
                        f"Game {len(record.games) + 1}: unfinished",
                        self.styles['SectionHeader']
                    ))
                    elements.append(self._rounds_table(record, list(record.rounds)))
            else:
                elements.append(Paragraph("Round Results", self.styles['SectionHeader']))
                elements.append(self._rounds_table(record, list(record.rounds)))

            # Final result
            elements.append(Paragraph("Final Result", self.styles['SectionHeader']))
            final_table = Table([["Result:", describe_winner(record)]], colWidths=[5*cm, 8*cm])
            final_table.setStyle(TableStyle([
                ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
                ('FONTSIZE', (1, 0), (1, 0), 14),
                ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ]))
            elements.append(final_table)

            # Footer
            elements.append(Spacer(1, 1*cm))
            elements.append(Paragraph(
                f"Generated by {APP_NAME}",
                ParagraphStyle(
                    name='Footer',
                    fontSize=8,
                    alignment=TA_CENTER,
                    textColor=colors.grey,
                )
            ))

            doc.build(elements)
            return True

        except (OSError, LayoutError) as e:
            logger.error("PDF export to %s failed: %s", filepath, e)
            return False

    def export_csv(self, record: MatchRecord, filepath: Union[str, Path]) -> bool:
        """
        Export match data as CSV for analysis.

        Args:
            record: The finished (or abandoned) match
            filepath: Output file path

        Returns:
            True if export successful, False otherwise
        """
        config = record.configuration
        try:
            with open(filepath, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)

                # Header
                writer.writerow([f"{APP_NAME} Match Export"])
                writer.writerow([])

                # Match info
                writer.writerow(["Match Information"])
                writer.writerow(["Match ID", record.match_id])
                writer.writerow(["Event", config.event_title])
                writer.writerow(["Phase", config.match_phase])
                writer.writerow(["Mode", record.mode.value])
                writer.writerow(["Game Type", config.game_type.value])
                writer.writerow(["Started", record.started_at.isoformat()])
                writer.writerow(["Ended", record.ended_at.isoformat()])
                writer.writerow(["Duration (s)", record.duration_seconds])
                writer.writerow(["Outcome", record.outcome.value])
                writer.writerow(["Winner", describe_winner(record)])
                writer.writerow([])

                # Teams
                writer.writerow(["Teams"])
                writer.writerow(["Side", "Name", "Color", "Score", "Bonus Total"])
                for side, team, score in (
                    (Side.TEAM_A, record.team_a, record.team_a_score),
                    (Side.TEAM_B, record.team_b, record.team_b_score),
                ):
                    writer.writerow([side.value, team.name, team.color, score, record.bonus_total(side)])
                writer.writerow([])

                # Round-by-round data
                writer.writerow(["Round Details"])
                writer.writerow([
                    "Game", "Round",
                    "Team A Points", "Team A Bonus", "Team A Hammer",
                    "Team B Points", "Team B Bonus", "Team B Hammer",
                ])
                for game_number, r in iter_rounds(record):
                    writer.writerow([
                        game_number if game_number is not None else "",
                        r.round_number,
                        r.team_a.points_after_round,
                        r.team_a.bonus_this_round,
                        int(r.team_a.had_hammer),
                        r.team_b.points_after_round,
                        r.team_b.bonus_this_round,
                        int(r.team_b.had_hammer),
                    ])

            return True

        except OSError as e:
            logger.error("CSV export to %s failed: %s", filepath, e)
            return False
