from tweetlex.services.wordlist.aggregator import FrequencyTable, LanguageTables
from tweetlex.services.wordlist.compiler import CompiledWordlist, compile_corpus
from tweetlex.services.wordlist.discovery import discover_files
from tweetlex.services.wordlist.tokenizer import tokenize
from tweetlex.services.wordlist.types import CompileSummary, Record, WordCount

__all__ = [
    "CompileSummary",
    "CompiledWordlist",
    "FrequencyTable",
    "LanguageTables",
    "Record",
    "WordCount",
    "compile_corpus",
    "discover_files",
    "tokenize",
]
