"""Hello -- the smallest blockwork program.

One inline template greets a list of people: a loop, a filter and the
``@last`` loop field. Values are HTML-escaped unless written as
``{{{triple}}}``.

Run:
    python app.py
"""

from blockwork import Environment

GREETING = "Hello, {{#each names}}{{this | capitalise}}{{#if @last}}!{{else}} and {{/if}}{{/each}}"

env = Environment(templates={"greeting": GREETING})

output = env.render("greeting", names=["ada", "grace"])
escaped = env.render("greeting", names=["<script>"])

if __name__ == "__main__":
    print(output)
    print(escaped)
