"""
Custom Pygments lexer for snp syntax highlighting

Provides syntax highlighting for .sn notes sources in debug listings and in
any editor or tool that discovers lexers through the pygments.lexers entry
point.

Token types:
- Keyword.Declaration: Section keys (s, #, [soh])
- Generic.Heading: Section titles
- Name.Attribute: Frame styles ([fragile])
- Keyword.Namespace: Metadata keys (T, X, N, D, Z, [preamble])
- Name.Decorator: Scope tags ([so], [nob], ...)
- Keyword: Structural keys (i, n, d, e, g, p, q, t, tcb, ...)
- Keyword.Pseudo: List markers (-, 1., :)
- Comment: Comment lines
"""

from pygments.lexer import RegexLexer, bygroups, default
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Comment,
    Generic,
    Number,
)


class SnpLexer(RegexLexer):
    """
    Lexer for snp notes markup

    Line-oriented: the first token of a line decides its class, the rest
    is scanned for inline emphasis, links, images and citations.

    Example:
        s Sorting [fragile]
        - **stable** sorts keep equal keys in order @knuth1998

    Tokens:
        s → Keyword.Declaration
        Sorting → Generic.Heading
        [fragile] → Name.Attribute
        - → Keyword.Pseudo
        **stable** → Generic.Strong
        @knuth1998 → Name.Label
    """

    name = 'SNP'
    aliases = ['snp', 'sn']
    filenames = ['*.sn']

    tokens = {
        'root': [
            # Comments: '#%', '##...', '% ...'
            (r'^(#%|##|%).*\n', Comment.Single),

            # Sections with optional frame style
            (r'^(s|#|\[soh\])( +)(.*?)( *\[[^\]\n]*\])?(\n)',
             bygroups(Keyword.Declaration, Text, Generic.Heading, Name.Attribute, Text)),

            # Metadata
            (r'^(T|X|N|Z|\[preamble\])( +)(.*\n)',
             bygroups(Keyword.Namespace, Text, String)),
            (r'^(D)( +)(\d+)', bygroups(Keyword.Namespace, Text, Number)),

            # Scope and verbatim tags
            (r'^\[(so|sos|sof|sol|son|sot|sob|soe|no|nob|noe|nos|bv|ev|'
             r'slidesonly|slidesonlybegin|slidesonlyend|notesonly|notesonlybegin|notesonlyend)\]',
             Name.Decorator),

            # Structural keys
            (r'^(tcb|tcs|tce|[indepqtg])(?= |\n|$)', Keyword),

            # List markers, indented or not
            (r'^( *)(-|\d+\.|:)(?= )', bygroups(Text, Keyword.Pseudo)),

            # Table rules
            (r'^[ |:+=-]*-{2,}[ |:+=-]*\n', Punctuation),

            default('inline'),
        ],

        'inline': [
            (r'\n', Text, '#pop'),
            (r'\*\*[^*\n]+\*\*', Generic.Strong),
            (r'\*[^*\n]+\*', Generic.Emph),
            (r'(!\[)([^\]\n]*)(\]\()([^)\n]+)(\))(\{[^}\n]*\})?',
             bygroups(Punctuation, String, Punctuation, Name.Variable, Punctuation, Name.Attribute)),
            (r'(\[)([^\]\n]+)(\]\()([^)\n]+)(\))',
             bygroups(Punctuation, String, Punctuation, Name.Variable, Punctuation)),
            (r'(?<![\w.@\\])@\w(?:[\w.:-]*\w)?', Name.Label),
            (r'\\[a-zA-Z]+', Name.Builtin),
            (r'\$[^$\n]+\$', String.Other),
            (r'[^*!\[@\\$\n]+', Text),
            (r'.', Text),
        ],
    }


def get_lexer() -> SnpLexer:
    """
    Get the SnpLexer instance

    Returns:
        SnpLexer instance ready for use with Pygments
    """
    return SnpLexer()
