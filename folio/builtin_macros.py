"""Templates for the built-in shortcodes.

A project can shadow any of these by adding ``templates/macros/<name>.html``.
Templates render with autoescaping off, so arguments are escaped explicitly.
The ``body`` of a body shortcode is emitted unescaped between blank lines so
the markdown renderer processes it.
"""

YOUTUBE = (
    '<div class="video-embed video-embed-youtube">'
    '<iframe src="https://www.youtube.com/embed/{{ id | e }}'
    "{% if start %}?start={{ start | int }}{% endif %}\""
    ' title="{{ title | default(\'YouTube video\') | e }}" frameborder="0"'
    ' allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"'
    ' allowfullscreen loading="lazy"></iframe></div>'
)

VIMEO = (
    '<div class="video-embed video-embed-vimeo">'
    '<iframe src="https://player.vimeo.com/video/{{ id | e }}"'
    ' title="{{ title | default(\'Vimeo video\') | e }}" frameborder="0"'
    ' allow="autoplay; fullscreen; picture-in-picture" allowfullscreen loading="lazy">'
    "</iframe></div>"
)

GIST = (
    '<script src="https://gist.github.com/{{ user | e }}/{{ id | e }}.js'
    '{% if file %}?file={{ file | urlencode }}{% endif %}"></script>'
)

CALLOUT = """<div class="callout callout-{{ type | default('info') | e }}">
{% if title %}<p class="callout-title">{{ title | e }}</p>
{% endif %}
{{ body }}

</div>"""

FIGURE = (
    '<figure class="figure">'
    '<img src="{{ src | e }}" alt="{{ alt | default(caption) | default(\'\') | e }}"'
    '{% if width %} width="{{ width | int }}"{% endif %} loading="lazy">'
    "{% if caption %}<figcaption>{{ caption | e }}</figcaption>{% endif %}"
    "</figure>"
)

CONTACT_FORM = """<form class="contact-form" method="post" action="{{ action | default('/contact') | e }}">
<label for="contact-name">{{ name_label | default('Name') | e }}</label>
<input id="contact-name" name="name" type="text" required>
<label for="contact-email">{{ email_label | default('Email') | e }}</label>
<input id="contact-email" name="email" type="email" required>
<label for="contact-message">{{ message_label | default('Message') | e }}</label>
<textarea id="contact-message" name="message" rows="5" required></textarea>
<button type="submit">{{ submit_label | default('Send') | e }}</button>
</form>"""

BUILTIN_MACROS: dict[str, str] = {
    "youtube": YOUTUBE,
    "vimeo": VIMEO,
    "gist": GIST,
    "callout": CALLOUT,
    "figure": FIGURE,
    "contact_form": CONTACT_FORM,
}
