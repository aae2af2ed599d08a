from deck_export.richtext import RichText, extract_rich_text, rich_or_plain


def test_plain_markup_collapses_whitespace():
    rich = extract_rich_text('<p>Hello   <span>\n world</span></p>')
    assert rich.text == 'Hello world'
    assert not (rich.bold or rich.italic or rich.underline or rich.strike)


def test_formatting_flags():
    rich = extract_rich_text('<p><strong>Big</strong> <em>news</em> <u>today</u> <s>maybe</s></p>')
    assert rich.text == 'Big news today maybe'
    assert rich.bold and rich.italic and rich.underline and rich.strike


def test_heading_level_and_alignment():
    rich = extract_rich_text('<h2 style="text-align: center">Agenda</h2>')
    assert rich.heading_level == 2
    assert rich.align == 'center'


def test_alignment_priority():
    rich = extract_rich_text('<p style="text-align:left">a</p><p style="text-align: right">b</p>')
    assert rich.align == 'right'


def test_empty_markup():
    assert extract_rich_text(None) == RichText(text='')
    assert extract_rich_text('') == RichText(text='')


def test_rich_or_plain():
    assert rich_or_plain('Plain', None) == RichText(text='Plain')
    assert rich_or_plain('Plain', '<b>Rich</b>').text == 'Rich'
