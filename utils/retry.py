import time


def _retry(fn, tries=3, base_delay=0.4, retry_on=(Exception,)):
    """지수 백오프 간단 재시도 (retry_on 에 해당하는 예외만 재시도)"""
    tries = max(1, int(tries))
    last_exc = None
    for i in range(tries):
        try:
            return fn()
        except retry_on as e:
            last_exc = e
            if i + 1 < tries:
                time.sleep(base_delay * (2 ** i))
    raise last_exc
