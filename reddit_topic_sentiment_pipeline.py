"""
REDDIT TOPIC SENTIMENT PIPELINE
===================================

Purpose
-------
Scrape the busiest discussion threads of a single subreddit (r/iPhone by
default), tokenize every comment, score word-level sentiment and emotion with
static lexicons, aggregate the sentiment by day, and write tables + charts for
a downstream dashboard (we feed the CSVs into Tableau).

Key Capabilities
----------------
1. **Thread Ranking** - pull a subreddit listing (top / hot / new / ...) and
   keep the N threads with the most comments.
2. **Comment Scrape** of every selected thread using PRAW. A thread that fails
   to load is skipped, the rest of the run carries on.
3. **Tokenization** - lowercase word tokens, stop words (NLTK + scikit-learn)
   and non-alphabetic tokens removed.
4. **Bing Sentiment** - positive / negative word counts and a daily score
   (Hu & Liu opinion lexicon shipped with NLTK).
5. **NRC Emotions** - anger, fear, joy, trust, ... counts (via NRCLex).
6. **CSV & PNG Outputs** for the dashboard.
7. **CLI Interface** for basic parameterization (subreddit, sort, time
   filter, number of threads, output dir).

Install Requirements
--------------------
```bash
pip install praw pandas tqdm nltk scikit-learn "NRCLex>=4" matplotlib
```

NLTK corpora (stopwords, opinion_lexicon) are downloaded on first use.

Reddit API Credentials
----------------------
```bash
export REDDIT_CLIENT_ID="..."
export REDDIT_CLIENT_SECRET="..."
export REDDIT_USER_AGENT="topic-sentiment/0.1"
```

Usage
-----
```bash
python reddit_topic_sentiment_pipeline.py \
  --subreddit iPhone \
  --sort top \
  --time-filter month \
  --top-n 40 \
  --output-dir ./reddit_sentiment_out
```

Outputs (prefix defaults to the lowercase subreddit name)
---------------------------------------------------------
- `<prefix>_comments_raw.csv`        : comment, date, url
- `<prefix>_tokens.csv`              : word, date, url
- `<prefix>_sentiment_words.csv`     : word, sentiment, n
- `<prefix>_sentiment_summary.csv`   : sentiment, n
- `<prefix>_sentiment_by_day.csv`    : day, total_score, avg_score, word_count
- `<prefix>_emotions.csv`            : sentiment, n
- `<prefix>_threads_used.csv`        : title, comments, url
- `top_positive_words.png`, `top_negative_words.png`,
  `sentiment_trend.png`, `emotion_breakdown.png`

Data Model Notes
----------------
- Every stage returns a new DataFrame; nothing is mutated in place.
- Lexicon joins are inner joins: unmatched tokens are dropped, and a day with
  comments but no matched words does NOT show up in the daily series.
- Timestamps are UTC; the daily series groups by UTC calendar day.
"""


from __future__ import annotations

import os
import re
import sys
import argparse
from dataclasses import dataclass, field
from typing import List, Dict, Any, Iterable, Optional, Callable

import pandas as pd
from tqdm import tqdm

import praw
from praw.models import Submission, Comment

from nltk import download as nltk_download
from nltk.corpus import stopwords, opinion_lexicon
from nltk.tokenize import RegexpTokenizer

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

# ---------------------------------------------------------------------------
# CONFIGURATION (defaults, table schemas, chart styling)
# ---------------------------------------------------------------------------
DEFAULT_SUBREDDIT = "iPhone"
DEFAULT_SORT = "top"
DEFAULT_TIME_FILTER = "month"
DEFAULT_CANDIDATE_LIMIT = 1000  # reddit listings stop around 1000 anyway
DEFAULT_TOP_N = 40
DEFAULT_TOP_WORDS = 20
DEFAULT_OUTPUT_DIR = "./reddit_sentiment_out"
DEFAULT_USER_AGENT = "topic-sentiment/0.1"
DEFAULT_TIMEOUT = 16

TIME_FILTERS = ["hour", "day", "week", "month", "year", "all"]

# Column schemas, checked at every stage boundary
THREAD_COLUMNS = ["title", "comments", "url"]
COMMENT_COLUMNS = ["comment", "date", "url"]
TOKEN_COLUMNS = ["word", "date", "url"]
LEXICON_COLUMNS = ["word", "sentiment"]
WORD_COUNT_COLUMNS = ["word", "sentiment", "n"]
CATEGORY_COUNT_COLUMNS = ["sentiment", "n"]
DAILY_COLUMNS = ["day", "total_score", "avg_score", "word_count"]

POSITIVE = "positive"
NEGATIVE = "negative"

# name -> (colour, figsize in inches)
CHARTS = {
    "top_positive_words": ("#2ecc71", (8, 6)),
    "top_negative_words": ("#e74c3c", (8, 6)),
    "sentiment_trend": ("#3498db", (10, 5)),
    "emotion_breakdown": ("#9b59b6", (8, 6)),
}
CHART_DPI = 300


class PipelineError(Exception):
    """Structural failure: the run cannot produce meaningful output."""


class SchemaError(PipelineError):
    pass


class LexiconError(PipelineError):
    pass


@dataclass
class PipelineConfig:
    subreddit: str = DEFAULT_SUBREDDIT
    sort: str = DEFAULT_SORT
    time_filter: str = DEFAULT_TIME_FILTER
    limit: int = DEFAULT_CANDIDATE_LIMIT
    top_n: int = DEFAULT_TOP_N
    top_words: int = DEFAULT_TOP_WORDS
    output_dir: str = DEFAULT_OUTPUT_DIR
    prefix: Optional[str] = None
    strip_markup: bool = False
    bing_csv: Optional[str] = None
    nrc_csv: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    progress: bool = True

    @property
    def file_prefix(self) -> str:
        return self.prefix or self.subreddit.lower()


@dataclass
class PipelineResult:
    """Every table a run produces, plus the paths that were written."""
    threads: pd.DataFrame
    comments: pd.DataFrame
    tokens: pd.DataFrame
    sentiment_words: pd.DataFrame
    sentiment_summary: pd.DataFrame
    sentiment_by_day: pd.DataFrame
    emotions: pd.DataFrame
    files: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Utilities (schema checks, text cleaning)
# ---------------------------------------------------------------------------

def require_columns(df: pd.DataFrame, columns: List[str], table: str) -> None:
    """Raise SchemaError if any of `columns` is absent from `df`."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(f"{table} table is missing column(s) {missing}; got {list(df.columns)}")


URL_RE = re.compile(r"https?://\S+")
MARKDOWN_LINK_RE = re.compile(r"\[(.*?)\]\((.*?)\)")
HTML_TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:  # strip reddit markup that would otherwise leak into tokens
    if not text:
        return ""
    # Remove markdown links but keep link text
    text = MARKDOWN_LINK_RE.sub(r"\1", text)
    text = URL_RE.sub(" ", text)
    text = HTML_TAG_RE.sub(" ", text)
    text = text.replace("&amp;", "&").replace("&lt;", "<").replace("&gt;", ">")
    text = WHITESPACE_RE.sub(" ", text)
    return text.strip()


# ---------------------------------------------------------------------------
# Reddit Scrape
# ---------------------------------------------------------------------------

def get_reddit_client(client_id: str, client_secret: str, user_agent: str, timeout: int = DEFAULT_TIMEOUT) -> praw.Reddit:
    return praw.Reddit(
        client_id=client_id,
        client_secret=client_secret,
        user_agent=user_agent,
        check_for_async=False,
        ratelimit_seconds=5,
        timeout=timeout,
    )


# time_filter only means something for top / controversial
SORT_FUNCS = {
    "hot": lambda sr, limit, tf: sr.hot(limit=limit),
    "new": lambda sr, limit, tf: sr.new(limit=limit),
    "top": lambda sr, limit, tf: sr.top(time_filter=tf, limit=limit),
    "rising": lambda sr, limit, tf: sr.rising(limit=limit),
    "controversial": lambda sr, limit, tf: sr.controversial(time_filter=tf, limit=limit),
}


def submission_to_dict(sub: Submission) -> Dict[str, Any]:
    return {
        "title": sub.title or "",
        "comments": int(sub.num_comments or 0),
        "url": f"https://www.reddit.com{sub.permalink}",
    }


def comment_to_dict(com: Comment, thread_url: str) -> Dict[str, Any]:
    return {
        "comment": com.body,
        "date": getattr(com, "created_utc", None),
        "url": thread_url,
    }


def fetch_threads(reddit: praw.Reddit, subreddit_name: str, sort: str = DEFAULT_SORT,
                  time_filter: str = DEFAULT_TIME_FILTER, limit: int = DEFAULT_CANDIDATE_LIMIT) -> pd.DataFrame:
    """Fetch the candidate thread listing for a subreddit.

    A failing listing call is reported and yields an empty table; the run then
    stops later on with "no usable comments".
    """
    if sort not in SORT_FUNCS:
        raise ValueError(f"Unknown sort {sort!r}; expected one of {sorted(SORT_FUNCS)}")

    subreddit = reddit.subreddit(subreddit_name)
    rows = []
    try:
        for sub in SORT_FUNCS[sort](subreddit, limit, time_filter):
            rows.append(submission_to_dict(sub))
    except Exception as e:
        print(f"[ERROR] Fetching r/{subreddit_name} ({sort}/{time_filter}): {e}", file=sys.stderr)

    return pd.DataFrame(rows, columns=THREAD_COLUMNS)


def select_top_threads(threads: pd.DataFrame, n: int = DEFAULT_TOP_N) -> pd.DataFrame:
    """Keep the `n` threads with the most comments, busiest first.

    Ties keep the listing order.
    """
    require_columns(threads, THREAD_COLUMNS, "threads")
    ranked = threads.sort_values("comments", ascending=False, kind="stable")
    return ranked.head(n).reset_index(drop=True)


def fetch_thread_comments(reddit: praw.Reddit, url: str) -> pd.DataFrame:
    """Fetch every comment of one thread (full tree, flattened).

    Raises when the thread comes back without any usable comment, so the
    caller can treat it like any other per-thread failure.
    """
    submission = reddit.submission(url=url)
    submission.comments.replace_more(limit=None)
    comments = [c for c in submission.comments.list() if getattr(c, "body", None) is not None]
    if not comments:
        raise ValueError("thread returned no comments")
    return pd.DataFrame([comment_to_dict(c, url) for c in comments])


def _fetch_or_skip(reddit: praw.Reddit, url: str) -> Optional[pd.DataFrame]:
    try:
        return fetch_thread_comments(reddit, url)
    except Exception as e:
        print(f"[WARN] Skipping thread {url}: {e}", file=sys.stderr)
        return None


def collect_comments(reddit: praw.Reddit, urls: Iterable[str], progress: bool = True) -> pd.DataFrame:
    """Fetch comments for every thread url and merge them into one table.

    One blocking request per thread, no retries. Failed threads contribute
    nothing.
    """
    urls = list(urls)
    batches = [
        batch
        for batch in (_fetch_or_skip(reddit, url) for url in tqdm(urls, desc="threads", disable=not progress))
        if batch is not None
    ]
    print(f"[INFO] {len(batches)} of {len(urls)} threads returned comments")
    if not batches:
        return pd.DataFrame(columns=COMMENT_COLUMNS)
    return pd.concat(batches, ignore_index=True)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def parse_dates(values: pd.Series) -> pd.Series:
    """Parse epoch seconds or date strings into tz-aware UTC timestamps.

    Unparseable values become NaT.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        return pd.to_datetime(values, utc=True)
    numeric = pd.to_numeric(values, errors="coerce")
    if values.notna().any() and numeric.notna().sum() == values.notna().sum():
        return pd.to_datetime(numeric, unit="s", utc=True)
    return pd.to_datetime(values, utc=True, errors="coerce")


def normalize_comments(raw: pd.DataFrame, strip_markup: bool = False) -> pd.DataFrame:
    require_columns(raw, COMMENT_COLUMNS, "comments")

    df = raw.loc[:, COMMENT_COLUMNS]
    has_text = df["comment"].notna() & df["comment"].astype(str).str.strip().ne("")
    df = df.loc[has_text].assign(comment=lambda d: d["comment"].astype(str))

    if strip_markup:
        df = df.assign(comment=df["comment"].map(clean_text))
        df = df.loc[df["comment"].ne("")]

    if df.empty:
        raise SchemaError(f"no usable comments ({len(raw)} raw rows, 0 with text)")

    dropped = len(raw) - len(df)
    if dropped:
        print(f"[INFO] Dropped {dropped} comment(s) with empty text")

    df = df.assign(date=parse_dates(df["date"]))
    bad_dates = int(df["date"].isna().sum())
    if bad_dates:
        print(f"[WARN] {bad_dates} comment(s) have an unparseable date", file=sys.stderr)
    return df.reset_index(drop=True)


# ---------------------------------------------------------------------------
# Tokenization
# ---------------------------------------------------------------------------

# words with inner apostrophes stay whole ("don't", "iphone's")
WORD_TOKENIZER = RegexpTokenizer(r"\w+(?:'\w+)*")
ALPHA_RE = re.compile(r"[a-zA-Z]")


def ensure_nltk_resource(loader: Callable[[], Any], package: str) -> Any:
    """Run `loader`, downloading the NLTK `package` once if it is missing."""
    try:
        return loader()
    except LookupError:
        print(f"[INFO] Downloading NLTK resource '{package}'...")
        if not nltk_download(package, quiet=True):
            raise LexiconError(f"NLTK resource '{package}' is not installed and could not be downloaded")
    try:
        return loader()
    except LookupError as e:
        raise LexiconError(f"NLTK resource '{package}' could not be loaded: {e}") from e


def load_stop_words(extra: Optional[Iterable[str]] = None) -> frozenset:
    """NLTK english stop words + scikit-learn's list (+ any extras)."""
    nltk_words = ensure_nltk_resource(lambda: stopwords.words("english"), "stopwords")
    words = set(nltk_words) | set(ENGLISH_STOP_WORDS)
    if extra:
        words |= {w.lower() for w in extra}
    return frozenset(words)


def tokenize_text(text: Any, stop_words: Iterable[str]) -> List[str]:
    if not isinstance(text, str) or not text.strip():
        return []
    words = WORD_TOKENIZER.tokenize(text.lower().replace("’", "'"))
    return [w for w in words if w not in stop_words and ALPHA_RE.search(w)]


def tokenize_comments(comments: pd.DataFrame, stop_words: Iterable[str]) -> pd.DataFrame:
    """One row per surviving word, keeping the comment's date and url."""
    require_columns(comments, COMMENT_COLUMNS, "comments")
    stop_words = frozenset(stop_words)

    words = comments["comment"].map(lambda t: tokenize_text(t, stop_words))
    tokens = comments.assign(word=words).explode("word")
    # comments with no surviving word explode to a NaN row
    tokens = tokens.loc[tokens["word"].notna()]
    return tokens.loc[:, TOKEN_COLUMNS].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Lexicons
# ---------------------------------------------------------------------------

def _lexicon_frame(df: pd.DataFrame, source: str) -> pd.DataFrame:
    missing = [c for c in LEXICON_COLUMNS if c not in df.columns]
    if missing:
        raise LexiconError(f"lexicon {source} is missing column(s) {missing}; got {list(df.columns)}")
    lex = df.loc[:, LEXICON_COLUMNS].dropna().astype(str).drop_duplicates().reset_index(drop=True)
    if lex.empty:
        raise LexiconError(f"lexicon {source} is empty")
    return lex


def load_lexicon_csv(path: str) -> pd.DataFrame:
    """Load a `word,sentiment` lexicon from CSV.

    Example rows:
        word,sentiment
        great,positive
        lag,negative
    """
    try:
        df = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise LexiconError(f"could not read lexicon {path}: {e}") from e
    return _lexicon_frame(df, path)


def load_bing_lexicon(path: Optional[str] = None) -> pd.DataFrame:
    """Binary positive/negative lexicon (Hu & Liu via NLTK) or a CSV override."""
    if path:
        return load_lexicon_csv(path)

    positive, negative = ensure_nltk_resource(
        lambda: (list(opinion_lexicon.positive()), list(opinion_lexicon.negative())),
        "opinion_lexicon",
    )
    df = pd.DataFrame({
        "word": positive + negative,
        "sentiment": [POSITIVE] * len(positive) + [NEGATIVE] * len(negative),
    })
    return _lexicon_frame(df, "opinion_lexicon")


def load_emotion_lexicon(vocabulary: Iterable[str], path: Optional[str] = None) -> pd.DataFrame:
    """NRC emotion entries for the words in `vocabulary` (or a CSV override).

    NRCLex only exposes the lexicon through lookups, so we resolve the run's
    vocabulary in one pass. Tokens go in as-is (no re-tokenizing). The result
    can legitimately be empty.
    """
    if path:
        return load_lexicon_csv(path)

    vocab = sorted(set(vocabulary))
    if not vocab:
        return pd.DataFrame(columns=LEXICON_COLUMNS)

    try:
        from nrclex import NRCLex
        emotion = NRCLex()
        emotion.load_token_list(vocab)
        affect = emotion.affect_dict
    except Exception as e:
        raise LexiconError(f"could not load NRC emotion lexicon: {e}") from e

    rows = [
        {"word": word, "sentiment": category}
        for word, categories in affect.items()
        for category in categories
    ]
    return pd.DataFrame(rows, columns=LEXICON_COLUMNS).drop_duplicates().reset_index(drop=True)


# ---------------------------------------------------------------------------
# Sentiment (binary lexicon)
# ---------------------------------------------------------------------------

def match_lexicon(tokens: pd.DataFrame, lexicon: pd.DataFrame) -> pd.DataFrame:
    """Inner join on exact word; unmatched tokens drop out, multi-label words fan out."""
    require_columns(tokens, TOKEN_COLUMNS, "tokens")
    require_columns(lexicon, LEXICON_COLUMNS, "lexicon")
    return tokens.merge(lexicon.loc[:, LEXICON_COLUMNS], on="word", how="inner")


def count_sentiment_words(tokens: pd.DataFrame, lexicon: pd.DataFrame) -> pd.DataFrame:
    matched = match_lexicon(tokens, lexicon)
    # sort=False keeps first-encounter order, the stable sort then keeps it for ties
    counts = matched.groupby(["word", "sentiment"], sort=False).size().reset_index(name="n")
    counts = counts.sort_values("n", ascending=False, kind="stable")
    return counts.loc[:, WORD_COUNT_COLUMNS].reset_index(drop=True)


def summarize_sentiment(tokens: pd.DataFrame, lexicon: pd.DataFrame) -> pd.DataFrame:
    matched = match_lexicon(tokens, lexicon)
    summary = matched.groupby("sentiment").size().reset_index(name="n")
    return summary.loc[:, CATEGORY_COUNT_COLUMNS]


def sentiment_by_day(tokens: pd.DataFrame, lexicon: pd.DataFrame) -> pd.DataFrame:
    """Daily +1/-1 score over lexicon-matched tokens.

    Days without a single matched word are absent from the result, they are
    not reported as 0.
    """
    matched = match_lexicon(tokens, lexicon)
    if matched.empty:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    scored = matched.assign(
        score=matched["sentiment"].map(lambda s: 1 if s == POSITIVE else -1),
        day=pd.to_datetime(matched["date"], utc=True).dt.date,
    )
    daily = (
        scored.groupby("day")
        .agg(total_score=("score", "sum"), word_count=("score", "size"))
        .reset_index()
    )
    daily["avg_score"] = daily["total_score"] / daily["word_count"]
    return daily.loc[:, DAILY_COLUMNS]


# ---------------------------------------------------------------------------
# Emotion (NRC lexicon)
# ---------------------------------------------------------------------------

def count_emotions(tokens: pd.DataFrame, lexicon: pd.DataFrame) -> pd.DataFrame:
    """Category totals; a token listed under k categories counts once in each."""
    matched = match_lexicon(tokens, lexicon)
    counts = matched.groupby("sentiment").size().reset_index(name="n")
    counts = counts.sort_values("n", ascending=False, kind="stable")
    return counts.loc[:, CATEGORY_COUNT_COLUMNS].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Reporting (CSV + charts)
# ---------------------------------------------------------------------------

def write_table(df: pd.DataFrame, output_dir: str, name: str, prefix: str) -> str:
    path = os.path.join(output_dir, f"{prefix}_{name}.csv")
    df.to_csv(path, index=False)
    print(f"[WRITE] {path} ({len(df)} rows)")
    return path


def _finish_chart(fig, ax, path: str, grid_axis: str) -> str:
    # close to theme_minimal: no frame, light grid on the value axis
    for spine in ax.spines.values():
        spine.set_visible(False)
    ax.grid(axis=grid_axis, color="#dddddd", linewidth=0.6)
    ax.set_axisbelow(True)
    fig.tight_layout()
    fig.savefig(path, dpi=CHART_DPI)
    plt.close(fig)
    print(f"[WRITE] {path}")
    return path


def _bar_chart(df: pd.DataFrame, label_col: str, path: str, name: str, title: str, xlabel: str) -> str:
    color, figsize = CHARTS[name]
    # ascending so the largest bar ends up on top
    ordered = df.sort_values("n", kind="stable")
    fig, ax = plt.subplots(figsize=figsize)
    ax.barh(ordered[label_col].astype(str).tolist(), ordered["n"].tolist(), color=color)
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    return _finish_chart(fig, ax, path, grid_axis="x")


def plot_top_words(sentiment_words: pd.DataFrame, sentiment: str, output_dir: str,
                   top_words: int = DEFAULT_TOP_WORDS) -> str:
    require_columns(sentiment_words, WORD_COUNT_COLUMNS, "sentiment words")
    name = f"top_{sentiment}_words"
    top = sentiment_words.loc[sentiment_words["sentiment"] == sentiment].head(top_words)
    return _bar_chart(
        top, "word", os.path.join(output_dir, f"{name}.png"), name,
        title=f"Top {top_words} {sentiment.capitalize()} Words", xlabel="Count",
    )


def plot_sentiment_trend(daily: pd.DataFrame, output_dir: str, subreddit: str) -> str:
    require_columns(daily, DAILY_COLUMNS, "sentiment by day")
    color, figsize = CHARTS["sentiment_trend"]
    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(pd.to_datetime(daily["day"]), daily["avg_score"].astype(float), color=color, linewidth=1.5)
    ax.axhline(0, linestyle="--", color="gray")
    ax.set_title(f"Daily Sentiment Trend - r/{subreddit}")
    ax.set_xlabel("Date")
    ax.set_ylabel("Average Sentiment Score")
    fig.autofmt_xdate()
    return _finish_chart(fig, ax, os.path.join(output_dir, "sentiment_trend.png"), grid_axis="y")


def plot_emotions(emotions: pd.DataFrame, output_dir: str) -> str:
    require_columns(emotions, CATEGORY_COUNT_COLUMNS, "emotions")
    return _bar_chart(
        emotions, "sentiment", os.path.join(output_dir, "emotion_breakdown.png"), "emotion_breakdown",
        title="Emotion Breakdown (NRC Lexicon)", xlabel="Word Count",
    )


def print_summary(result: PipelineResult) -> None:
    print("\n==========================================")
    print("  ANALYSIS COMPLETE")
    print("==========================================")
    print(f"Threads used: {len(result.threads)}")
    print(f"Comments scraped: {len(result.comments)}")
    print(f"Tokens generated: {len(result.tokens)}")
    print(f"Sentiment words: {int(result.sentiment_summary['n'].sum())}")
    print("\nFiles saved:")
    for path in result.files:
        print(f"  - {path}")
    print("\nNext step: Import CSVs into Tableau for dashboard")


# ---------------------------------------------------------------------------
# Main Pipeline
# ---------------------------------------------------------------------------

def run_pipeline(
    config: PipelineConfig,
    reddit: praw.Reddit,
    stop_words: Optional[Iterable[str]] = None,
    bing_lexicon: Optional[pd.DataFrame] = None,
    emotion_lexicon: Optional[pd.DataFrame] = None,
) -> PipelineResult:
    os.makedirs(config.output_dir, exist_ok=True)
    prefix = config.file_prefix
    files: List[str] = []

    # Static inputs first so a broken lexicon fails before the long scrape
    stop_words = load_stop_words() if stop_words is None else frozenset(stop_words)
    bing = load_bing_lexicon(config.bing_csv) if bing_lexicon is None else _lexicon_frame(bing_lexicon, "bing")

    # Threads ------------------------------------------------------------------------------
    print(f"[INFO] Fetching r/{config.subreddit} threads ({config.sort}, {config.time_filter})...")
    candidates = fetch_threads(reddit, config.subreddit, sort=config.sort,
                               time_filter=config.time_filter, limit=config.limit)
    print(f"[INFO] Total threads found: {len(candidates)}")
    threads = select_top_threads(candidates, config.top_n)
    if not threads.empty:
        print("[INFO] Busiest threads:")
        print(threads.loc[:, ["title", "comments"]].head(10).to_string(index=False))

    # Comments -----------------------------------------------------------------------------
    print(f"[INFO] Fetching comments for {len(threads)} threads (this may take a while)...")
    raw = collect_comments(reddit, threads["url"], progress=config.progress)
    print(f"[INFO] Total comments scraped: {len(raw)}")

    threads_used = threads.loc[:, THREAD_COLUMNS]
    files.append(write_table(threads_used, config.output_dir, "threads_used", prefix))

    comments = normalize_comments(raw, strip_markup=config.strip_markup)
    files.append(write_table(comments, config.output_dir, "comments_raw", prefix))

    # Tokens -------------------------------------------------------------------------------
    tokens = tokenize_comments(comments, stop_words)
    print(f"[INFO] Total tokens after cleaning: {len(tokens)}")
    files.append(write_table(tokens, config.output_dir, "tokens", prefix))

    # Sentiment ----------------------------------------------------------------------------
    sentiment_words = count_sentiment_words(tokens, bing)
    sentiment_summary = summarize_sentiment(tokens, bing)
    print("\nOverall Sentiment Distribution:")
    print(sentiment_summary.to_string(index=False))
    files.append(write_table(sentiment_words, config.output_dir, "sentiment_words", prefix))
    files.append(write_table(sentiment_summary, config.output_dir, "sentiment_summary", prefix))

    daily = sentiment_by_day(tokens, bing)
    print("\nSentiment by Day:")
    print(daily.head().to_string(index=False))
    files.append(write_table(daily, config.output_dir, "sentiment_by_day", prefix))

    # Emotions -----------------------------------------------------------------------------
    if emotion_lexicon is None:
        nrc = load_emotion_lexicon(tokens["word"], path=config.nrc_csv)
    else:
        nrc = _lexicon_frame(emotion_lexicon, "emotion")
    emotions = count_emotions(tokens, nrc)
    print("\nEmotion Breakdown:")
    print(emotions.to_string(index=False))
    files.append(write_table(emotions, config.output_dir, "emotions", prefix))

    # Charts -------------------------------------------------------------------------------
    files.append(plot_top_words(sentiment_words, POSITIVE, config.output_dir, config.top_words))
    files.append(plot_top_words(sentiment_words, NEGATIVE, config.output_dir, config.top_words))
    files.append(plot_sentiment_trend(daily, config.output_dir, config.subreddit))
    files.append(plot_emotions(emotions, config.output_dir))

    result = PipelineResult(
        threads=threads_used,
        comments=comments,
        tokens=tokens,
        sentiment_words=sentiment_words,
        sentiment_summary=sentiment_summary,
        sentiment_by_day=daily,
        emotions=emotions,
        files=files,
    )
    print_summary(result)
    print("[DONE] Pipeline complete.")
    return result


# ---------------------------------------------------------------------------
# CLI Entrypoint
# ---------------------------------------------------------------------------

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Scrape a subreddit's busiest threads and analyze word sentiment + emotions.")
    p.add_argument("--client-id", default=os.getenv("REDDIT_CLIENT_ID"), help="Reddit API client ID (or env REDDIT_CLIENT_ID)")
    p.add_argument("--client-secret", default=os.getenv("REDDIT_CLIENT_SECRET"), help="Reddit API client secret (or env REDDIT_CLIENT_SECRET)")
    p.add_argument("--user-agent", default=os.getenv("REDDIT_USER_AGENT", DEFAULT_USER_AGENT), help="User agent string")
    p.add_argument("--subreddit", default=DEFAULT_SUBREDDIT, help="Subreddit to analyze (without r/)")
    p.add_argument("--sort", choices=list(SORT_FUNCS.keys()), default=DEFAULT_SORT, help="Thread listing sort")
    p.add_argument("--time-filter", choices=TIME_FILTERS, default=DEFAULT_TIME_FILTER, help="Time window for top/controversial")
    p.add_argument("--limit", type=int, default=DEFAULT_CANDIDATE_LIMIT, help="Candidate threads pulled from the listing")
    p.add_argument("--top-n", type=int, default=DEFAULT_TOP_N, help="Threads (most comments first) to scrape")
    p.add_argument("--top-words", type=int, default=DEFAULT_TOP_WORDS, help="Bars in the top positive/negative word charts")
    p.add_argument("--prefix", default=None, help="CSV file prefix (default: lowercase subreddit)")
    p.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR, help="Directory for outputs")
    p.add_argument("--bing-csv", default=None, help="Optional word,sentiment CSV replacing the Bing lexicon")
    p.add_argument("--nrc-csv", default=None, help="Optional word,sentiment CSV replacing the NRC emotion lexicon")
    p.add_argument("--strip-markup", action="store_true", help="Remove links, URLs and HTML from comments before tokenizing")
    p.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT, help="HTTP timeout (seconds) for Reddit requests")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    return p.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        subreddit=args.subreddit,
        sort=args.sort,
        time_filter=args.time_filter,
        limit=args.limit,
        top_n=args.top_n,
        top_words=args.top_words,
        output_dir=args.output_dir,
        prefix=args.prefix,
        strip_markup=args.strip_markup,
        bing_csv=args.bing_csv,
        nrc_csv=args.nrc_csv,
        timeout=args.timeout,
        progress=not args.no_progress,
    )


def main(argv=None):
    args = parse_args(argv)

    if not args.client_id or not args.client_secret:
        print("[FATAL] Reddit API credentials missing. Use --client-id/--client-secret or env vars.", file=sys.stderr)
        sys.exit(1)

    config = config_from_args(args)
    reddit = get_reddit_client(args.client_id, args.client_secret, args.user_agent, timeout=config.timeout)

    try:
        run_pipeline(config, reddit)
    except PipelineError as e:
        print(f"[FATAL] {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
