import io
from typing import Any, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .orchestrator import PlanSnapshot

TABLE_STYLE = TableStyle([
    ("GRID", (0, 0), (-1, -1), 0.4, colors.grey),
    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
])


def pdf_filename(snapshot: PlanSnapshot) -> str:
    return f"{'_'.join(snapshot.profile.name.split())}_Fitness_Plan.pdf"


def render_plan_pdf(snapshot: PlanSnapshot) -> bytes:
    profile, plan = snapshot.profile, snapshot.plan
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title=f"{profile.name} - Fitness Plan")
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="Small", fontSize=9, leading=11))
    story: List[Any] = []

    story.append(Paragraph(f"<b>{escape(profile.name)}'s 7-Day Plan</b>", styles["Title"]))
    story.append(Paragraph(
        f"Goal: {profile.goal} | Level: {profile.level} | Location: {profile.location} | Diet: {profile.diet}",
        styles["Normal"],
    ))
    story.append(Paragraph(
        f"Age: {profile.age} | Height: {profile.height:g} cm | Weight: {profile.weight:g} kg",
        styles["Normal"],
    ))
    story.append(Spacer(1, 0.2 * inch))
    story.append(Paragraph(f"<i>\"{escape(plan.motivation_quote)}\"</i>", styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))
    story.append(Paragraph("<b>Tips</b>", styles["Heading2"]))
    story.append(Paragraph("<br/>".join(f"&bull; {escape(tip)}" for tip in plan.ai_tips), styles["Small"]))

    story.append(PageBreak())
    story.append(Paragraph("<b>Workout Plan</b>", styles["Heading1"]))
    for day in plan.workout_plan:
        story.append(Paragraph(f"<b>{escape(day.day)}</b> - {escape(day.focus)}", styles["Heading2"]))
        rows = [["Exercise", "Sets", "Reps", "Rest"]]
        for ex in day.exercises:
            rows.append([Paragraph(escape(ex.name), styles["Small"]), str(ex.sets), ex.reps, ex.rest])
        t = Table(rows, hAlign="LEFT", colWidths=[3.2 * inch, 0.6 * inch, 1.3 * inch, 1.0 * inch])
        t.setStyle(TABLE_STYLE)
        story.append(t)
        story.append(Spacer(1, 0.15 * inch))

    story.append(PageBreak())
    story.append(Paragraph("<b>Diet Plan</b>", styles["Heading1"]))
    for day in plan.diet_plan:
        story.append(Paragraph(f"<b>{escape(day.day)}</b>", styles["Heading2"]))
        rows = [["Meal", "Dish", "Description"]]
        for meal in day.meals:
            rows.append([
                meal.type,
                Paragraph(escape(meal.name), styles["Small"]),
                Paragraph(escape(meal.description), styles["Small"]),
            ])
        t = Table(rows, hAlign="LEFT", colWidths=[0.9 * inch, 2.0 * inch, 3.2 * inch])
        t.setStyle(TABLE_STYLE)
        story.append(t)
        story.append(Spacer(1, 0.15 * inch))

    doc.build(story)
    return buf.getvalue()
