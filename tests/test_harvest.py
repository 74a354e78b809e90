import asyncio
from urllib.parse import unquote

import httpx
import pytest

from bookharvest.config import Config
from bookharvest.errors import UnknownSiteError
from bookharvest.harvest import HarvestState, harvest, harvest_with_report
from bookharvest.models import Candidate, SearchTask
from bookharvest.ranking import normalize_url, rank
from bookharvest.scoring import MAX_RELEVANCE

CONFIG = Config(base_delay=0)


def _harvest(task: SearchTask, handler, config: Config = CONFIG, with_report: bool = False):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            if with_report:
                return await harvest_with_report(task, config, client)
            return await harvest(task, config, client)

    return asyncio.run(_go())


def _html(body: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=body)

    return handler


def test_scenario_a_full_harvest():
    task = SearchTask(target_site="xiaolipan", query="曾国藩传")
    html = """
    <div class="book-item"><a href="/p/1496858.html">曾国藩传 - 张宏杰</a></div>
    <div class="book-item"><a href="/p/2000000.html">红楼梦 脂评汇校本</a></div>
    """

    results = _harvest(task, _html(html))

    assert len(results) == 1
    top = results[0]
    assert top.detail_url == "https://www.xiaolipan.com/p/1496858.html"
    assert top.download_url == "https://www.xiaolipan.com/download/1496858.html"
    assert top.relevance >= 50


def test_search_url_is_percent_encoded():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text="")

    _harvest(SearchTask(target_site="xiaolipan", query="红楼梦 脂评"), handler)

    assert seen[0].startswith("https://www.xiaolipan.com/search.html?keyword=")
    assert unquote(seen[0].split("keyword=")[1]) == "红楼梦 脂评"


def test_wellformed_isbn_is_used_as_search_term():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text="")

    _harvest(SearchTask(target_site="35ppt", query="曾国藩传", isbn="978-7-5502-1234-5"), handler)
    _harvest(SearchTask(target_site="35ppt", query="曾国藩传", isbn="not-an-isbn"), handler)

    assert seen[0].endswith("?s=9787550212345")
    assert unquote(seen[1].split("?s=")[1]) == "曾国藩传"


def test_scenario_b_navigation_only_page_returns_empty():
    task = SearchTask(target_site="xiaolipan", query="红楼梦")

    report = _harvest(task, _html('<a href="/about">关于我们</a>'), with_report=True)

    assert report.results == []
    assert report.state is HarvestState.FAILED_EMPTY
    assert report.error is None


def test_scenario_c_duplicate_detail_urls_collapse():
    structured = Candidate(
        site="小立盘",
        title="曾国藩传 - 张宏杰",
        detail_url="https://www.xiaolipan.com/p/1496858.html",
        relevance=60,
    )
    loose = Candidate(
        site="小立盘",
        title="曾国藩传 张宏杰 著",
        detail_url="https://WWW.xiaolipan.com/p/1496858.html#comments",
        relevance=60,
    )

    results = rank([structured, loose], limit=5)

    assert results == [structured]


def test_scenario_d_upstream_503_returns_empty():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(503)

    task = SearchTask(target_site="xiaolipan", query="曾国藩传")
    report = _harvest(task, handler, with_report=True)

    assert report.results == []
    assert report.state is HarvestState.FAILED_EMPTY
    assert "503" in report.error
    assert len(calls) == CONFIG.retries + 1


def test_transport_failure_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    assert _harvest(SearchTask(target_site="35ppt", query="曾国藩传"), handler) == []


def test_scenario_e_unknown_site_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(UnknownSiteError):
        _harvest(SearchTask(target_site="unknown_site", query="曾国藩传"), handler)


def test_results_are_ranked_deduped_and_limited():
    task = SearchTask(target_site="xiaolipan", query="曾国藩 全集")
    html = "".join(
        f'<div class="book-item"><a href="/p/{i}.html">{title}</a></div>'
        for i, title in [
            (1, "曾国藩 全集 精校版"),
            (2, "曾国藩家书 选读本"),
            (1, "曾国藩 全集 精校版"),
            (3, "曾国藩 全集"),
            (4, "曾国藩 日记 全集 上"),
            (5, "完全无关的一本书"),
        ]
    )

    results = _harvest(task, _html(html), Config(base_delay=0, limit=3))

    assert [r.detail_url.rsplit("/", 1)[1] for r in results] == ["3.html", "1.html", "4.html"]
    assert len({normalize_url(r.detail_url) for r in results}) == len(results)
    assert all(results[i].relevance >= results[i + 1].relevance for i in range(len(results) - 1))


def test_min_relevance_filters_unrelated_titles():
    task = SearchTask(target_site="xiaolipan", query="曾国藩传")
    html = '<div class="book-item"><a href="/p/5.html">完全无关的一本书</a></div>'

    report = _harvest(task, _html(html), with_report=True)

    assert report.strategy == "structured"
    assert report.results == []
    assert report.state is HarvestState.DONE


def test_known_title_fallback_has_max_relevance():
    task = SearchTask(target_site="xiaolipan", query="曾国藩传")

    report = _harvest(task, _html("<html><body>维护中</body></html>"), with_report=True)

    assert report.strategy == "known"
    assert [r.relevance for r in report.results] == [MAX_RELEVANCE]


def test_download_discovered_from_detail_page():
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.path == "/search.php":
            return httpx.Response(
                200,
                text='<div class="list-item"><h3><a href="/post/77.html">平凡的世界 路遥 全三册</a></h3></div>',
            )
        if request.url.path == "/post/77.html":
            return httpx.Response(200, text='<a class="download" href="/download/77">下载</a>')
        return httpx.Response(404)

    task = SearchTask(target_site="book5678", query="平凡的世界", author="路遥")
    results = _harvest(task, handler)

    assert unquote(requested[0].split("q=")[1]) == "平凡的世界 路遥"
    assert results[0].download_url == "https://book5678.com/download/77"


def test_detail_page_failure_is_not_retried():
    detail_calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/search.php":
            return httpx.Response(
                200,
                text='<div class="list-item"><h3><a href="/post/77.html">平凡的世界 全三册</a></h3></div>',
            )
        detail_calls.append(request.url)
        return httpx.Response(500)

    results = _harvest(SearchTask(target_site="book5678", query="平凡的世界"), handler)

    assert len(results) == 1
    assert results[0].download_url is None
    assert len(detail_calls) == 1


def test_malformed_download_href_leaves_download_unset():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/search.php":
            return httpx.Response(
                200,
                text='<div class="list-item"><h3><a href="/post/77.html">平凡的世界 全三册</a></h3></div>',
            )
        return httpx.Response(200, text='<a class="download" href="http://[x/download/1">下载</a>')

    results = _harvest(SearchTask(target_site="book5678", query="平凡的世界"), handler)

    assert len(results) == 1
    assert results[0].detail_url == "https://book5678.com/post/77.html"
    assert results[0].download_url is None
