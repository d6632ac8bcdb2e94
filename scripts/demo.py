from phishsense.explanations import EXAMPLES, explain
from phishsense.rules import RuleEngine

engine = RuleEngine()

samples = [(ex["title"], ex["text"], "") for ex in EXAMPLES]
samples.append(("Short link", "Please reset your password", "http://bit.ly/xyz"))

for title, text, url in samples:
    ev = engine.evaluate(text, url)
    print(f"== {title}")
    print("KEYWORDS:", ev.matched_keywords)
    print("HITS:", [h.model_dump() for h in ev.hits])
    print("SUMMARY:", ev.summary)
    print("EXPLANATION:", " ".join(explain(ev.result)))
