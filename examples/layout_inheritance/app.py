"""Layout inheritance -- three levels of {{#extend}} with block overrides.

``base`` defines the page skeleton, ``section`` fills the sidebar and adds a
default article, and ``article`` replaces only the title and the content.
Blocks the most-derived template does not override keep the nearest
ancestor's content.

Run:
    python app.py
"""

from blockwork import Environment

TEMPLATES = {
    "base": (
        "<html>"
        '<head><title>{{#block "title"}}Site{{/block}}</title></head>'
        "<body>"
        '<aside>{{#block "sidebar"}}{{/block}}</aside>'
        '<main>{{#block "content"}}Nothing here yet{{/block}}</main>'
        "</body>"
        "</html>"
    ),
    "section": (
        '{{#extend "base"}}'
        '{{#block "sidebar"}}{{#each links}}<a href="{{url}}">{{label}}</a>{{/each}}{{/block}}'
        '{{#block "content"}}<article>Section index</article>{{/block}}'
    ),
    "article": (
        '{{#extend "section"}}'
        '{{#block "title"}}{{title}} | Docs{{/block}}'
        '{{#block "content"}}<article><h1>{{title}}</h1>{{{body}}}</article>{{/block}}'
    ),
}

env = Environment(templates=TEMPLATES)

context = {
    "title": "Getting started",
    "body": "<p>Install the package.</p>",
    "links": [
        {"url": "/start", "label": "Start"},
        {"url": "/guide", "label": "Guide"},
    ],
}

output = env.render("article", context)
chain = env.inheritance_chain("article")


def main() -> None:
    print(" -> ".join(chain))
    print(output)


if __name__ == "__main__":
    main()
