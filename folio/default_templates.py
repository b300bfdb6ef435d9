"""Fallback templates used when a project does not provide its own.

Project templates with the same name take precedence.
"""

BASE = """<!DOCTYPE html>
<html lang="{{ lang }}">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{% block title %}{{ site.title }}{% endblock %}</title>
{% if page and page.description %}<meta name="description" content="{{ page.description }}">
{% elif site.description %}<meta name="description" content="{{ site.description }}">
{% endif %}
{% if page and page.robots_directive %}<meta name="robots" content="{{ page.robots_directive }}">
{% endif %}
{% if page %}<link rel="canonical" href="{{ absolute_url(page.url) }}">
{% endif %}
{% for alternate in alternates %}<link rel="alternate" hreflang="{{ alternate.language_code }}" href="{{ absolute_url(alternate.url) }}">
{% endfor %}
{% if has_feed %}<link rel="alternate" type="application/rss+xml" title="{{ site.title }}" href="{{ lang_prefix }}/feed.xml">
{% endif %}
</head>
<body>
<a class="skip-link" href="#main">{{ t.skip_to_content }}</a>
<header><a href="{{ lang_prefix }}/">{{ site.title }}</a>
{% if languages | length > 1 %}<nav class="language-switcher" aria-label="{{ t.language }}">
{% for alternate in alternates %}<a href="{{ alternate.url }}" hreflang="{{ alternate.language_code }}"{% if alternate.language_code == lang %} aria-current="true"{% endif %}>{{ alternate.language_code }}</a>
{% endfor %}</nav>{% endif %}
</header>
<main id="main">{% block content %}{% endblock %}</main>
</body>
</html>
"""

PAGE = """{% extends "base.html" %}
{% block title %}{{ page.title }} | {{ site.title }}{% endblock %}
{% block content %}<article>
<h1>{{ page.title }}</h1>
{{ page.rendered_html | safe }}
</article>{% endblock %}
"""

POST = """{% extends "base.html" %}
{% block title %}{{ page.title }} | {{ site.title }}{% endblock %}
{% block content %}<article class="post">
<h1>{{ page.title }}</h1>
<p class="meta">{% if page.date %}<time datetime="{{ page.date.isoformat() }}">{{ page.date.isoformat() }}</time> &middot; {% endif %}{{ page.reading_time_minutes }} {{ t.min_read }}</p>
{% if page.toc %}<nav class="toc"><h2>{{ t.contents }}</h2>{{ render_toc(page) }}</nav>{% endif %}
{{ page.rendered_html | safe }}
{% if page.tags %}<ul class="tags">{% for tag in page.tags %}<li><a href="{{ lang_prefix }}/tags/{{ tag | slugify }}/">{{ tag }}</a></li>{% endfor %}</ul>{% endif %}
</article>{% endblock %}
"""

DOC = """{% extends "base.html" %}
{% block title %}{{ page.title }} | {{ site.title }}{% endblock %}
{% block content %}<div class="doc">
{% if nav %}<nav class="sidebar">{% for group in nav %}{% if group.label %}<h2>{{ group.label }}</h2>{% endif %}<ul>{% for item in group.records %}<li><a href="{{ item.url }}"{% if item.url == page.url %} aria-current="page"{% endif %}>{{ item.title }}</a></li>{% endfor %}</ul>{% endfor %}</nav>{% endif %}
<article>
<h1>{{ page.title }}</h1>
{{ page.rendered_html | safe }}
</article>
{% if page.toc %}<aside class="toc"><h2>{{ t.on_this_page }}</h2>{{ render_toc(page) }}</aside>{% endif %}
</div>{% endblock %}
"""

INDEX = """{% extends "base.html" %}
{% block title %}{% if view %}{{ view.label }} | {% endif %}{{ site.title }}{% endblock %}
{% block content %}
{% if index %}{{ index.rendered_html | safe }}{% elif view %}<h1>{{ view.label }}</h1>{% endif %}
{% for item in items %}<article class="summary">
<h2><a href="{{ item.url }}">{{ item.title }}</a></h2>
{% if item.date %}<time datetime="{{ item.date.isoformat() }}">{{ item.date.isoformat() }}</time>{% endif %}
{% if item.description %}<p>{{ item.description }}</p>{% else %}{{ item.excerpt_html | safe }}{% endif %}
</article>
{% endfor %}
{% if pagination and (pagination.prev_url or pagination.next_url) %}<nav class="pagination">
{% if pagination.prev_url %}<a rel="prev" href="{{ pagination.prev_url }}">{{ t.newer }}</a>{% endif %}
<span>{{ t.page_n_of_total | replace("{n}", pagination.page_number | string) | replace("{total}", total_pages | string) }}</span>
{% if pagination.next_url %}<a rel="next" href="{{ pagination.next_url }}">{{ t.older }}</a>{% endif %}
</nav>{% endif %}
{% endblock %}
"""

TAGS = """{% extends "base.html" %}
{% block title %}{{ t.all_tags }} | {{ site.title }}{% endblock %}
{% block content %}<h1>{{ t.all_tags }}</h1>
<ul class="tags">{% for slug in tags %}<li><a href="{{ lang_prefix }}/tags/{{ slug }}/">{{ tags.names[slug] }}</a> ({{ tags[slug] | length }})</li>{% endfor %}</ul>
{% endblock %}
"""

TAG = """{% extends "base.html" %}
{% block title %}{{ t.tagged }}: {{ tag_name }} | {{ site.title }}{% endblock %}
{% block content %}<h1>{{ t.tagged }}: {{ tag_name }}</h1>
<ul>{% for item in items %}<li><a href="{{ item.url }}">{{ item.title }}</a></li>{% endfor %}</ul>
{% endblock %}
"""

NOT_FOUND = """{% extends "base.html" %}
{% block title %}{{ t.not_found_title }} | {{ site.title }}{% endblock %}
{% block content %}<h1>{{ t.not_found_title }}</h1>
<p>{{ t.not_found_message }}</p>
<p><a href="{{ lang_prefix }}/">{{ t.go_home }}</a></p>
{% endblock %}
"""

REDIRECT = """<!DOCTYPE html>
<html lang="{{ lang }}">
<head>
<meta charset="utf-8">
<title>{{ t.redirecting }}</title>
<link rel="canonical" href="{{ target }}">
<meta http-equiv="refresh" content="0; url={{ target }}">
<meta name="robots" content="noindex">
</head>
<body><p><a href="{{ target }}">{{ t.redirecting }}</a></p></body>
</html>
"""

DEFAULT_TEMPLATES: dict[str, str] = {
    "base.html": BASE,
    "page.html": PAGE,
    "post.html": POST,
    "doc.html": DOC,
    "index.html": INDEX,
    "tags.html": TAGS,
    "tag.html": TAG,
    "404.html": NOT_FOUND,
    "redirect.html": REDIRECT,
}
