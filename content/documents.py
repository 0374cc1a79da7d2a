import io

from docx import Document
from docx.shared import Pt


def build_document(title, sections, subtitle=''):
    """
    Build a ``.docx``: a bold title, a subtitle line, then one bold heading
    and body paragraph per ``{'title': ..., 'body': ...}`` section.
    """
    document = Document()

    run = document.add_paragraph().add_run(title)
    run.bold = True
    run.font.size = Pt(14)
    if subtitle:
        document.add_paragraph(subtitle)
    document.add_paragraph('')

    for section in sections:
        heading = document.add_paragraph().add_run(section.get('title') or 'Untitled')
        heading.bold = True
        heading.font.size = Pt(12)
        body = document.add_paragraph().add_run(section.get('body') or 'No content')
        body.font.size = Pt(11)
        document.add_paragraph('')

    bio = io.BytesIO()
    document.save(bio)
    bio.seek(0)
    return bio
